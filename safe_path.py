"""
Secret path prefix gate for the HTTP surface.

Every route lives under a configured prefix such as ``/__my_secret__``.
Without a usable prefix the service answers nothing but empty 404s.
"""
import logging
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from config import Settings

logger = logging.getLogger(__name__)


def not_found_empty() -> Response:
    """404 with no body, so a probe learns nothing about the prefix."""
    return Response(status_code=404)


def normalize_safe_base_path(value: Optional[str]) -> Optional[str]:
    """
    Normalize the configured prefix to ``/segment`` form.

    Returns None when the value is empty or just ``/``.
    """
    raw = (value or "").strip()
    if not raw:
        return None
    with_leading_slash = raw if raw.startswith("/") else f"/{raw}"
    normalized = with_leading_slash[:-1] if with_leading_slash.endswith("/") else with_leading_slash
    if not normalized or normalized == "/":
        return None
    return normalized


def strip_safe_base_path(pathname: str, safe_base_path: str) -> Optional[str]:
    """Path with the prefix removed, or None when it is not under the prefix."""
    if pathname == safe_base_path:
        return "/"
    prefix = f"{safe_base_path}/"
    if not pathname.startswith(prefix):
        return None
    return pathname[len(safe_base_path):] or "/"


class SafePathMiddleware(BaseHTTPMiddleware):
    """
    Reject anything outside the secret prefix, strip it from the rest.

    Settings are built per request and exposed as ``request.state.settings``.
    """

    def __init__(self, app: ASGIApp, settings_factory: Callable[[], Settings] = Settings.from_env) -> None:
        super().__init__(app)
        self.settings_factory = settings_factory

    async def dispatch(self, request: Request, call_next):
        try:
            settings = self.settings_factory()
        except PydanticValidationError as e:
            # A broken config must not reveal that the service exists
            logger.error("invalid configuration, rejecting request: %s", e)
            return not_found_empty()

        safe_base_path = normalize_safe_base_path(settings.safe_path)
        if not safe_base_path:
            return not_found_empty()

        path_after_safe = strip_safe_base_path(request.scope["path"], safe_base_path)
        if path_after_safe is None:
            return not_found_empty()

        request.scope["path"] = path_after_safe
        request.state.settings = settings
        return await call_next(request)
