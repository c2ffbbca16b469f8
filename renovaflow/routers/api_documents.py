"""On-demand SharePoint operations triggered from the project detail screen.

Unlike the background sync after project writes, these calls are awaited and
their outcome is reported to the caller.
"""

from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError
from ..db.session import get_db
from ..models.project import Project
from ..schemas.common import SuccessResponse
from ..schemas.project import AiDocRequest, DocumentStatusOut, UploadResult
from ..services.dispatch import get_documents
from ..services.documents import DocumentStoreNotConfigured, GraphDocumentStore

logger = logging.getLogger("renovaflow.documents")

router = APIRouter(prefix="/api", tags=["documents"])


def _load_project(db: Session, project_id: str) -> Project:
    project = db.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project not found")
    return project


@router.get("/sharepoint/status", response_model=DocumentStatusOut)
async def api_sharepoint_status(documents: GraphDocumentStore = Depends(get_documents)):
    try:
        await documents.check_connection()
    except DocumentStoreNotConfigured:
        return DocumentStatusOut(
            status="error",
            message="Microsoft Graph Client initialization failed. Check environment variables.",
        )
    except httpx.HTTPError as exc:
        return DocumentStatusOut(status="error", message=str(exc) or "Failed to connect to SharePoint.")
    return DocumentStatusOut(status="ok", message="Connected to SharePoint successfully.")


@router.post("/projects/{project_id}/sharepoint-folder", response_model=SuccessResponse)
async def api_create_sharepoint_folder(
    project_id: str,
    db: Session = Depends(get_db),
    documents: GraphDocumentStore = Depends(get_documents),
):
    project = _load_project(db, project_id)
    try:
        await documents.create_folder(project.folder_name)
    except DocumentStoreNotConfigured as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except httpx.HTTPError as exc:
        logger.error("sharepoint.folder_failed", extra={"extra_data": {"project_id": project_id, "error": str(exc)}})
        raise HTTPException(status_code=502, detail="Failed to create SharePoint folder") from exc
    return SuccessResponse()


@router.post("/projects/{project_id}/ai-doc", response_model=UploadResult)
async def api_upload_ai_doc(
    project_id: str,
    payload: AiDocRequest,
    db: Session = Depends(get_db),
    documents: GraphDocumentStore = Depends(get_documents),
):
    if not payload.content or not payload.file_name:
        raise HTTPException(status_code=400, detail="Missing content or fileName")
    project = _load_project(db, project_id)
    try:
        result = await documents.upload_file(
            project.folder_name,
            payload.file_name,
            payload.content.encode("utf-8"),
        )
    except (DocumentStoreNotConfigured, httpx.HTTPError) as exc:
        logger.error("sharepoint.ai_doc_failed", extra={"extra_data": {"project_id": project_id, "error": str(exc)}})
        raise HTTPException(status_code=500, detail="Failed to upload to SharePoint") from exc
    return UploadResult(success=True, url=result.get("webUrl"))
