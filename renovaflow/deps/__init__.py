"""Request-scoped dependencies shared by the API routers."""

from __future__ import annotations

from fastapi import Request

from ..core.config import AppSettings


def get_app_settings(request: Request) -> AppSettings:
    return request.app.state.settings


__all__ = ["get_app_settings"]
