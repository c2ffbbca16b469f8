"""Fire-and-forget SharePoint side effects.

Route handlers commit their own transaction first and then hand work to the
:class:`DocumentDispatcher`, which attaches it to the response's background
tasks. The work runs after the response is sent; failures are logged on the
``renovaflow.documents`` logger and never reach the client.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import httpx
from fastapi import BackgroundTasks, Request

from .documents import DocumentStoreNotConfigured, GraphDocumentStore

logger = logging.getLogger("renovaflow.documents")


async def best_effort(label: str, action: Callable[[], Awaitable[Any]], **context: Any) -> Optional[Any]:
    """Await ``action`` and swallow document-store failures after logging them."""

    try:
        return await action()
    except DocumentStoreNotConfigured:
        logger.info("sharepoint.skipped", extra={"extra_data": {"task": label, **context}})
    except (httpx.HTTPError, OSError, KeyError, ValueError) as exc:
        logger.error(
            "sharepoint.failed",
            exc_info=True,
            extra={"extra_data": {"task": label, "error": str(exc), **context}},
        )
    except Exception as exc:
        # e.g. TypeError from a malformed Graph payload
        logger.error(
            "sharepoint.unexpected_error",
            exc_info=True,
            extra={"extra_data": {"task": label, "error": repr(exc), **context}},
        )
    return None


class DocumentDispatcher:
    def __init__(self, documents: GraphDocumentStore, db_path: Optional[Path]) -> None:
        self.documents = documents
        self.db_path = db_path

    async def ensure_folder(self, folder_name: str) -> None:
        await best_effort(
            "folder",
            lambda: self.documents.create_folder(folder_name),
            folder=folder_name,
        )

    async def copy_upload(self, folder_name: str, file_name: str, source: Path) -> None:
        await best_effort(
            "upload",
            lambda: self.documents.upload_file(folder_name, file_name, source.read_bytes()),
            folder=folder_name,
            file=file_name,
        )

    async def backup_database(self) -> None:
        if self.db_path is None:
            return
        await best_effort("backup", lambda: self.documents.backup_database(self.db_path))

    def schedule_folder(self, tasks: BackgroundTasks, folder_name: str) -> None:
        tasks.add_task(self.ensure_folder, folder_name)

    def schedule_upload(self, tasks: BackgroundTasks, folder_name: str, file_name: str, source: Path) -> None:
        tasks.add_task(self.copy_upload, folder_name, file_name, source)

    def schedule_backup(self, tasks: BackgroundTasks) -> None:
        tasks.add_task(self.backup_database)


def get_dispatcher(request: Request) -> DocumentDispatcher:
    return request.app.state.dispatcher


def get_documents(request: Request) -> GraphDocumentStore:
    return request.app.state.documents
