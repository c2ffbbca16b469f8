from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ..core.config import AppSettings
from ..core.errors import NotFoundError
from ..crud.files import remove_stored_files
from ..crud.projects import (
    create_project,
    delete_project,
    get_project,
    list_projects,
    patch_project,
    update_project,
)
from ..db.session import Store, get_db, get_store
from ..deps import get_app_settings
from ..schemas.common import SuccessResponse
from ..schemas.project import ProjectCreate, ProjectDetail, ProjectOut, ProjectPatch, ProjectReplace
from ..services.dispatch import DocumentDispatcher, get_dispatcher

router = APIRouter(prefix="/api/projects", tags=["projects"])


def _folder_name(payload: ProjectCreate | ProjectReplace, project_id: str) -> str:
    return payload.property_name or payload.title or project_id


@router.get("", response_model=list[ProjectOut])
def api_list_projects(db: Session = Depends(get_db)):
    return [ProjectOut.model_validate(project) for project in list_projects(db)]


@router.post("", response_model=SuccessResponse)
def api_create_project(
    payload: ProjectCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    store: Store = Depends(get_store),
    dispatcher: DocumentDispatcher = Depends(get_dispatcher),
):
    create_project(db, payload.model_dump(), new_id=store.id_factory)
    dispatcher.schedule_folder(background_tasks, _folder_name(payload, payload.id))
    return SuccessResponse()


@router.get("/{project_id}", response_model=ProjectDetail)
def api_get_project(project_id: str, db: Session = Depends(get_db)):
    project = get_project(db, project_id, include_files=True)
    if not project:
        raise NotFoundError("Project not found")
    return ProjectDetail.model_validate(project)


@router.patch("/{project_id}", response_model=SuccessResponse)
def api_patch_project(project_id: str, payload: ProjectPatch, db: Session = Depends(get_db)):
    patch_project(db, project_id, payload.model_dump(exclude_unset=True))
    return SuccessResponse()


@router.put("/{project_id}", response_model=SuccessResponse)
def api_replace_project(
    project_id: str,
    payload: ProjectReplace,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    store: Store = Depends(get_store),
    dispatcher: DocumentDispatcher = Depends(get_dispatcher),
):
    update_project(db, project_id, payload.model_dump(), new_id=store.id_factory)
    # Folder name follows the property name or title.
    dispatcher.schedule_folder(background_tasks, _folder_name(payload, project_id))
    return SuccessResponse()


@router.delete("/{project_id}", response_model=SuccessResponse)
def api_delete_project(
    project_id: str,
    db: Session = Depends(get_db),
    settings: AppSettings = Depends(get_app_settings),
):
    stored_names = delete_project(db, project_id)
    remove_stored_files(settings.upload_dir, stored_names)
    return SuccessResponse()
