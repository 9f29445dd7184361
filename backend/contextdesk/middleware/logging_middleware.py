"""
Request logging middleware.

Pure ASGI (no BaseHTTPMiddleware) so request bodies can be observed without
consuming them. Each request gets one completion line with method, path,
status and duration; bodies are attached after masking credentials and
truncation.
"""

import json
import logging
import time
import uuid
from typing import Iterable, List, Optional
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.logging_config import filter_sensitive_data, truncate_large_data

logger = logging.getLogger(__name__)

MAX_BODY_LOG = 2000


def sanitize_body(chunks: List[bytes]) -> Optional[str]:
    """Join captured chunks, mask sensitive JSON keys and truncate."""
    raw = b"".join(chunks)
    if not raw:
        return None
    text = raw.decode("utf-8", errors="ignore")
    try:
        text = json.dumps(filter_sensitive_data(json.loads(text)), ensure_ascii=False)
    except json.JSONDecodeError:
        pass
    return truncate_large_data(text, max_length=MAX_BODY_LOG)


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware:
    """Logs every HTTP request except the excluded paths."""

    def __init__(self, app: ASGIApp, exclude_paths: Optional[Iterable[str]] = None):
        self.app = app
        self.exclude_paths = set(exclude_paths or ("/api/health", "/"))

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        request_id = uuid.uuid4().hex[:12]
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "")
        start_time = time.time()

        request_chunks: List[bytes] = []
        response_chunks: List[bytes] = []
        status_code = 0

        async def capture_receive() -> Message:
            message = await receive()
            if message["type"] == "http.request":
                request_chunks.append(message.get("body", b""))
            return message

        async def capture_send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            elif message["type"] == "http.response.body":
                response_chunks.append(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, capture_receive, capture_send)
        except Exception as e:
            logger.error(
                f"Request failed: {method} {path} - {e}",
                exc_info=True,
                extra={"extra_fields": {
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "duration_ms": round((time.time() - start_time) * 1000, 2),
                }}
            )
            raise

        duration_ms = round((time.time() - start_time) * 1000, 2)
        fields = {
            "request_id": request_id,
            "method": method,
            "path": path,
            "query": scope.get("query_string", b"").decode("utf-8", errors="ignore") or None,
            "status_code": status_code,
            "duration_ms": duration_ms,
            "request_body": sanitize_body(request_chunks),
            "response_body": sanitize_body(response_chunks),
        }
        logger.log(
            _level_for(status_code),
            f"{method} {path} - {status_code} ({duration_ms:.2f}ms)",
            extra={"extra_fields": fields}
        )
