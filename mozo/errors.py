from __future__ import annotations

import json
from typing import Any, Dict, List

INVALID_INPUT_MESSAGE = "Entrada inválida."


def _invalid_fields(body: bytes) -> List[str]:
    """Form fields named in a FastAPI 422 body, e.g. ``["from_mode"]``."""
    try:
        detail = json.loads(body.decode("utf-8")).get("detail")
    except (UnicodeDecodeError, ValueError, AttributeError):
        return []
    if not isinstance(detail, list):
        return []

    fields: List[str] = []
    for item in detail:
        loc = item.get("loc") if isinstance(item, dict) else None
        if not loc:
            continue
        name = str(loc[-1])
        if name not in fields:
            fields.append(name)
    return fields


class ValidationNormalizeMiddleware:
    """Turn FastAPI's 422 into the page's ``{"error": ...}`` shape with 400.

    Forms post raw strings, so a 422 only means a required field such as
    ``from_mode`` never arrived. The body lists those fields so the page can
    point at them. Every other response streams through untouched.
    """

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(self, scope: Dict[str, Any], receive: Any, send: Any) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        held_start: Dict[str, Any] = {}
        held_body = bytearray()

        async def send_wrapper(message: Dict[str, Any]) -> None:
            if message["type"] == "http.response.start" and message.get("status") == 422:
                held_start.update(message)
                return
            if not held_start or message["type"] != "http.response.body":
                await send(message)
                return

            held_body.extend(message.get("body", b"") or b"")
            if message.get("more_body"):
                return

            payload = json.dumps(
                {"error": INVALID_INPUT_MESSAGE, "fields": _invalid_fields(bytes(held_body))}
            ).encode("utf-8")
            headers = [
                (key, value)
                for key, value in held_start.get("headers", [])
                if key.lower() not in {b"content-length", b"content-type"}
            ]
            headers.append((b"content-type", b"application/json"))
            headers.append((b"content-length", str(len(payload)).encode("latin-1")))
            await send({"type": "http.response.start", "status": 400, "headers": headers})
            await send({"type": "http.response.body", "body": payload})

        await self.app(scope, receive, send_wrapper)
