"""Uploaded project documents: bytes on disk plus a registry row."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import IO, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import StoreError
from ..core.ids import IdFactory, new_id
from ..models.file import ProjectFile
from ..models.project import Project

logger = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = "/uploads"


def _safe_name(filename: str | None) -> str:
    safe_name = Path(filename or "upload").name.strip()
    return safe_name or "upload"


def stored_path(upload_dir: Path, stored_name: str) -> Path:
    return upload_dir / Path(stored_name).name


def save_upload(
    db: Session,
    project: Project,
    filename: str | None,
    file_data: IO[bytes],
    upload_dir: Path,
    *,
    new_id: IdFactory = new_id,
) -> tuple[ProjectFile, Path]:
    """Write the upload under ``upload_dir`` and register it against ``project``."""

    display_name = _safe_name(filename)
    file_id = new_id()
    storage_name = f"{file_id}-{display_name}"
    upload_dir.mkdir(parents=True, exist_ok=True)
    dest_path = stored_path(upload_dir, storage_name)
    file_data.seek(0)
    with dest_path.open("wb") as buffer:
        shutil.copyfileobj(file_data, buffer)

    record = ProjectFile(
        id=file_id,
        project_id=project.id,
        name=display_name,
        url=f"{UPLOAD_URL_PREFIX}/{storage_name}",
    )
    db.add(record)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        dest_path.unlink(missing_ok=True)
        logger.exception("file.register_failed", extra={"extra_data": {"project_id": project.id}})
        raise StoreError("Failed to register file") from exc
    db.refresh(record)
    logger.info(
        "file.uploaded",
        extra={"extra_data": {"project_id": project.id, "file_id": file_id, "size": dest_path.stat().st_size}},
    )
    return record, dest_path


def remove_stored_files(upload_dir: Path, stored_names: Iterable[str]) -> None:
    for name in stored_names:
        path = stored_path(upload_dir, name)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("file.unlink_failed %s: %s", path, exc)


def delete_file(db: Session, file_id: str, upload_dir: Path) -> bool:
    """Remove the stored bytes and the registry row. Unknown ids are ignored."""

    record = db.get(ProjectFile, file_id)
    if record is None:
        return False
    stored_name = record.stored_name
    db.delete(record)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("file.delete_failed", extra={"extra_data": {"file_id": file_id}})
        raise StoreError("Failed to delete file") from exc
    remove_stored_files(upload_dir, [stored_name])
    logger.info("file.deleted", extra={"extra_data": {"file_id": file_id}})
    return True
