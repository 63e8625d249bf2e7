from __future__ import annotations

import json
from urllib.parse import parse_qsl

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send


FORM_CONTENT_TYPE = b"application/x-www-form-urlencoded"
DEFAULT_MAX_BODY_SIZE = 100 * 1024


async def _reject(status_code: int, detail: str, scope: Scope, receive: Receive, send: Send) -> None:
    response = JSONResponse(status_code=status_code, content={"detail": detail})
    await response(scope, receive, send)


def _content_type(scope: Scope) -> bytes:
    for name, value in scope.get("headers", []):
        if name == b"content-type":
            return value.split(b";", 1)[0].strip().lower()
    return b""


class FormBodyMiddleware:
    """Re-encode urlencoded bodies as JSON so one set of request models serves both."""

    def __init__(self, app: ASGIApp, max_body_size: int = DEFAULT_MAX_BODY_SIZE) -> None:
        self.app = app
        self.max_body_size = max_body_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or _content_type(scope) != FORM_CONTENT_TYPE:
            await self.app(scope, receive, send)
            return

        body = b""
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] == "http.disconnect":
                return
            body += message.get("body", b"")
            if len(body) > self.max_body_size:
                await _reject(413, "form body too large", scope, receive, send)
                return
            more_body = message.get("more_body", False)

        try:
            fields = dict(parse_qsl(body.decode("utf-8"), encoding="utf-8", errors="strict"))
        except UnicodeDecodeError:
            await _reject(400, "form body is not valid UTF-8", scope, receive, send)
            return

        payload = json.dumps(fields).encode("utf-8")
        headers = [
            (name, value)
            for name, value in scope["headers"]
            if name not in (b"content-type", b"content-length")
        ]
        headers.append((b"content-type", b"application/json"))
        headers.append((b"content-length", str(len(payload)).encode("ascii")))

        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if replayed:
                return await receive()
            replayed = True
            return {"type": "http.request", "body": payload, "more_body": False}

        await self.app({**scope, "headers": headers}, replay, send)
