"""SharePoint document storage through Microsoft Graph.

Every project gets a folder under ``SHAREPOINT_BASE_PATH`` named after its
property name (or title). Uploaded files are copied into that folder and the
SQLite database file is copied to the base path as a backup.

The methods here raise on failure. Callers that must never fail because of
SharePoint go through :mod:`renovaflow.services.dispatch`, which logs and drops
errors.
"""

from __future__ import annotations

import logging
import re
import time
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from ..core.config import AppSettings

logger = logging.getLogger("renovaflow.documents")

GRAPH_SCOPE = "https://graph.microsoft.com/.default"
BACKUP_FILE_NAME = "renovaflow.db"
_UNSAFE_FOLDER_CHARS = re.compile(r'[\\/:*?"<>|]')
# Refresh the token a little before Graph would reject it.
_TOKEN_SKEW_SECONDS = 60


class DocumentStoreNotConfigured(Exception):
    """Raised when the Microsoft Graph credentials or drive ids are missing."""


def sanitize_folder_name(name: str) -> str:
    return _UNSAFE_FOLDER_CHARS.sub("_", name)


def _raise_for_status(response: httpx.Response, context: str) -> None:
    if response.status_code in {401, 403}:
        logger.warning("Graph authentication failed during %s", context)
    elif response.status_code >= 500:
        logger.error("Graph service error %s during %s", response.status_code, context)
    elif response.status_code >= 400:
        logger.error("Graph request error %s during %s", response.status_code, context)
    response.raise_for_status()


class GraphDocumentStore:
    def __init__(self, settings: AppSettings, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.settings = settings
        self._transport = transport
        self._token: Optional[str] = None
        self._token_expires_at = 0.0

    @property
    def configured(self) -> bool:
        return self.settings.sharepoint_configured

    def _client(self) -> httpx.AsyncClient:
        timeout = httpx.Timeout(self.settings.GRAPH_TIMEOUT_SECONDS)
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    def _drive_url(self) -> str:
        return (
            f"{self.settings.GRAPH_BASE_URL}/sites/{self.settings.SHAREPOINT_SITE_ID}"
            f"/drives/{self.settings.SHAREPOINT_DRIVE_ID}"
        )

    def _item_url(self, path: str, suffix: str = "") -> str:
        return f"{self._drive_url()}/root:/{quote(path, safe='/')}:{suffix}"

    def folder_path(self, folder_name: str) -> str:
        return f"{self.settings.SHAREPOINT_BASE_PATH}/{sanitize_folder_name(folder_name)}"

    async def _access_token(self, client: httpx.AsyncClient) -> str:
        if not self.configured:
            raise DocumentStoreNotConfigured("SharePoint integration is not configured")
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token
        url = f"{self.settings.GRAPH_LOGIN_URL}/{self.settings.MICROSOFT_TENANT_ID}/oauth2/v2.0/token"
        response = await client.post(
            url,
            data={
                "client_id": self.settings.MICROSOFT_CLIENT_ID,
                "client_secret": self.settings.MICROSOFT_CLIENT_SECRET,
                "scope": GRAPH_SCOPE,
                "grant_type": "client_credentials",
            },
        )
        _raise_for_status(response, "token acquisition")
        data = response.json()
        self._token = data["access_token"]
        expires_in = int(data.get("expires_in") or 0)
        self._token_expires_at = time.monotonic() + max(expires_in - _TOKEN_SKEW_SECONDS, 0)
        return self._token

    async def _request(self, method: str, url: str, context: str, **kwargs: Any) -> Dict[str, Any]:
        async with self._client() as client:
            token = await self._access_token(client)
            headers = {"Authorization": f"Bearer {token}", **kwargs.pop("headers", {})}
            response = await client.request(method, url, headers=headers, **kwargs)
        _raise_for_status(response, context)
        if not response.content:
            return {}
        return response.json()

    async def check_connection(self) -> Dict[str, Any]:
        return await self._request("GET", self._drive_url(), "drive lookup")

    async def create_folder(self, folder_name: str) -> Dict[str, Any]:
        """Create the project folder; Graph replaces an existing folder of the same name."""

        path = self.folder_path(folder_name)
        logger.info("sharepoint.folder_create", extra={"extra_data": {"path": path}})
        payload = {
            "name": sanitize_folder_name(folder_name),
            "folder": {},
            "@microsoft.graph.conflictBehavior": "replace",
        }
        result = await self._request("PATCH", self._item_url(path), "folder creation", json=payload)
        logger.info("sharepoint.folder_ready", extra={"extra_data": {"path": path}})
        return result

    async def upload_file(self, folder_name: str, file_name: str, content: bytes) -> Dict[str, Any]:
        path = f"{self.folder_path(folder_name)}/{file_name}"
        logger.info("sharepoint.upload", extra={"extra_data": {"path": path, "size": len(content)}})
        return await self._request(
            "PUT",
            self._item_url(path, "/content"),
            "file upload",
            content=content,
            headers={"Content-Type": "application/octet-stream"},
        )

    async def backup_database(self, db_path: Path) -> Optional[Dict[str, Any]]:
        if not db_path.exists():
            logger.info("sharepoint.backup_skipped", extra={"extra_data": {"reason": "missing", "path": str(db_path)}})
            return None
        path = f"{self.settings.SHAREPOINT_BASE_PATH}/{BACKUP_FILE_NAME}"
        result = await self._request(
            "PUT",
            self._item_url(path, "/content"),
            "database backup",
            content=db_path.read_bytes(),
            headers={"Content-Type": "application/octet-stream"},
        )
        logger.info("sharepoint.backup_completed", extra={"extra_data": {"path": path}})
        return result
