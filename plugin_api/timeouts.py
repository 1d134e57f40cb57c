"""Per-request read/write deadlines for the plugin API.

uvicorn bounds idle keep-alive connections but not a client that trickles its
request body or stops reading the response. ``TimeoutMiddleware`` wraps the
ASGI ``receive``/``send`` callables so a slow or malicious client cannot hold a
worker forever.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, MutableMapping, Optional

from fastapi import HTTPException

Message = MutableMapping[str, Any]
Receive = Callable[[], Awaitable[Message]]
Send = Callable[[Message], Awaitable[None]]
ASGIApp = Callable[[Dict[str, Any], Receive, Send], Awaitable[None]]

DEFAULT_READ_TIMEOUT_S = 5.0
DEFAULT_WRITE_TIMEOUT_S = 10.0


class RequestReadTimeout(HTTPException):
    """Request body did not arrive in time."""

    def __init__(self) -> None:
        super().__init__(status_code=408, headers={"Connection": "close"})


class ResponseWriteTimeout(Exception):
    """Client did not accept the response in time; the connection is dropped."""


class TimeoutMiddleware:
    def __init__(
        self,
        app: ASGIApp,
        *,
        read_timeout_s: float = DEFAULT_READ_TIMEOUT_S,
        write_timeout_s: float = DEFAULT_WRITE_TIMEOUT_S,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.app = app
        self.read_timeout_s = read_timeout_s
        self.write_timeout_s = write_timeout_s
        self.log = logger or logging.getLogger("plugin_api.timeouts")

    async def __call__(self, scope: Dict[str, Any], receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        body_done = False
        response_started = False

        async def timed_receive() -> Message:
            nonlocal body_done
            if body_done:
                return await receive()
            try:
                message = await asyncio.wait_for(receive(), self.read_timeout_s)
            except asyncio.TimeoutError:
                self.log.warning(
                    "Read timeout after %.1fs on %s %s", self.read_timeout_s, scope.get("method"), path
                )
                raise RequestReadTimeout()
            if message.get("type") != "http.request" or not message.get("more_body", False):
                body_done = True
            return message

        async def timed_send(message: Message) -> None:
            nonlocal response_started
            if message.get("type") == "http.response.start":
                response_started = True
            try:
                await asyncio.wait_for(send(message), self.write_timeout_s)
            except asyncio.TimeoutError:
                self.log.warning(
                    "Write timeout after %.1fs on %s %s", self.write_timeout_s, scope.get("method"), path
                )
                raise ResponseWriteTimeout(path)

        try:
            await self.app(scope, timed_receive, timed_send)
        except RequestReadTimeout:
            if response_started:
                raise
            await send(
                {
                    "type": "http.response.start",
                    "status": 408,
                    "headers": [(b"content-length", b"0"), (b"connection", b"close")],
                }
            )
            await send({"type": "http.response.body", "body": b""})
