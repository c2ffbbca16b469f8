from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from ..core.config import AppSettings
from ..core.errors import NotFoundError
from ..crud.files import delete_file, save_upload
from ..crud.projects import get_project
from ..db.session import Store, get_db, get_store
from ..deps import get_app_settings
from ..schemas.common import SuccessResponse
from ..schemas.project import ProjectFileOut
from ..services.dispatch import DocumentDispatcher, get_dispatcher

router = APIRouter(prefix="/api", tags=["files"])


@router.post("/projects/{project_id}/files", response_model=ProjectFileOut)
async def api_upload_file(
    project_id: str,
    background_tasks: BackgroundTasks,
    file: Optional[UploadFile] = File(default=None),
    db: Session = Depends(get_db),
    store: Store = Depends(get_store),
    settings: AppSettings = Depends(get_app_settings),
    dispatcher: DocumentDispatcher = Depends(get_dispatcher),
):
    if file is None or not (file.filename or "").strip():
        raise HTTPException(status_code=400, detail="No file uploaded")
    try:
        project = get_project(db, project_id)
        if not project:
            raise NotFoundError("Project not found")
        record, stored = save_upload(
            db,
            project,
            file.filename,
            file.file,
            settings.upload_dir,
            new_id=store.id_factory,
        )
    finally:
        await file.close()
    dispatcher.schedule_upload(background_tasks, project.folder_name, record.name, stored)
    dispatcher.schedule_backup(background_tasks)
    return ProjectFileOut.model_validate(record)


@router.delete("/files/{file_id}", response_model=SuccessResponse)
def api_delete_file(
    file_id: str,
    db: Session = Depends(get_db),
    settings: AppSettings = Depends(get_app_settings),
):
    delete_file(db, file_id, settings.upload_dir)
    return SuccessResponse()
