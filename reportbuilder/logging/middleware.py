import getpass
import json
import logging
import os
import platform
import socket
import time
from datetime import datetime
from typing import Callable, Optional, Sequence

from fastapi import Request, Response
from sqlalchemy.exc import SQLAlchemyError
from starlette.background import BackgroundTask
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from reportbuilder.core.database import Database
from reportbuilder.logging.models import Log

logger = logging.getLogger(__name__)


def current_username() -> str:
    """Username of the account running the service, across platforms."""
    try:
        return os.environ.get("USER") or os.environ.get("USERNAME") or getpass.getuser() or "unknown_user"
    except (KeyError, OSError):
        return "unknown_user"


def current_hostname() -> str:
    return socket.gethostname() or platform.node() or "unknown_host"


def persist_log(database: Database, log: Log) -> None:
    """Write one log row; a failing log write never breaks the response."""
    with database.session() as session:
        try:
            session.add(log)
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            logger.exception("Failed to persist request log for %s %s", log.method, log.path)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Persists every API request and response to the config database's ``log`` table."""

    def __init__(self, app: ASGIApp, application_id: str = "Unknown", excluded_paths: Sequence[str] = ()):
        super().__init__(app)
        self.username = current_username()
        self.hostname = current_hostname()
        self.application_id = application_id
        self.excluded_paths = tuple(excluded_paths)

        logger.info(
            "Logging middleware initialized with username: %s on host: %s, App ID: %s",
            self.username,
            self.hostname,
            self.application_id,
        )

    async def dispatch(self, request: Request, call_next: Callable):
        if any(request.url.path.startswith(path) for path in self.excluded_paths):
            return await call_next(request)

        start_time = time.time()

        body_bytes = await request.body()
        request_body = body_bytes.decode("utf-8", errors="ignore")

        # Reconstruct stream
        async def receive() -> dict:
            return {"type": "http.request", "body": body_bytes}

        request = Request(request.scope, receive=receive)

        response = await call_next(request)

        duration_ms = (time.time() - start_time) * 1000
        status_code = response.status_code
        content_type = response.headers.get("content-type", "")

        response_body = b""
        if isinstance(response, Response) and hasattr(response, "body"):
            response_body = response.body
        elif hasattr(response, "body_iterator"):
            original_iterator = response.body_iterator
            chunks = []

            async def buffer_iterator():
                nonlocal response_body
                async for chunk in original_iterator:
                    chunks.append(chunk)
                    yield chunk
                response_body = b"".join(chunks)

            response.body_iterator = buffer_iterator()

        database: Database = request.app.state.config_db

        def log_to_db():
            log = Log(
                timestamp=datetime.now(),
                method=request.method,
                path=str(request.url.path),
                status_code=status_code,
                client_ip=request.client.host if request.client else None,
                request_headers=json.dumps(dict(request.headers)),
                request_body=request_body,
                response_body=self._describe_body(response_body, content_type, status_code),
                processing_time=duration_ms,
                user_agent=request.headers.get("user-agent"),
                username=self.username,
                hostname=self.hostname,
                application_id=self.application_id,
            )
            persist_log(database, log)

        response.background = getattr(response, "background", None) or BackgroundTask(log_to_db)
        return response

    @staticmethod
    def _describe_body(body: bytes, content_type: str, status_code: int) -> Optional[str]:
        """Text of a response body; file downloads are summarised, not stored."""
        if "text/csv" in content_type or "spreadsheet" in content_type or "attachment" in content_type:
            return f"[{content_type} download, {len(body)} bytes]"
        if "text/html" in content_type and status_code < 400:
            return "[HTML content not logged for successful response]"
        if not body:
            return "[Response body not available]"
        return body.decode("utf-8", errors="ignore")
