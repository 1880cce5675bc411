"""Request ID middleware.

Assigns an X-Request-Id header to each response, echoing the caller's
value when the request carried one.
"""

from __future__ import annotations

import uuid


class RequestIdMiddleware:
    def __init__(self, app, header_name: str = "X-Request-Id") -> None:  # type: ignore[no-untyped-def]
        self.app = app
        self.header_name = header_name

    def _incoming(self, scope) -> str | None:  # type: ignore[no-untyped-def]
        wanted = self.header_name.lower().encode("latin-1")
        for key, value in scope.get("headers") or []:
            if key.lower() == wanted and value:
                return value.decode("latin-1")
        return None

    async def __call__(self, scope, receive, send):  # type: ignore[no-untyped-def]
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_id = self._incoming(scope) or str(uuid.uuid4())
        header_bytes = self.header_name.lower().encode("latin-1")

        async def send_wrapper(message):  # type: ignore[no-untyped-def]
            if message.get("type") == "http.response.start":
                headers = list(message.get("headers") or [])
                if header_bytes not in [k.lower() for k, _ in headers]:
                    headers.append((self.header_name.encode("latin-1"), request_id.encode("latin-1")))
                message = {**message, "headers": headers}
            await send(message)

        await self.app(scope, receive, send_wrapper)


__all__ = ["RequestIdMiddleware"]
