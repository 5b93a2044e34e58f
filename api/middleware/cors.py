"""
CORS 中间件

前端与本服务跨域部署，所有响应都带上宽松的 CORS 头；
任意 OPTIONS 请求直接返回 200 与空响应体，不进入路由。
"""
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.response import cors_headers


class PermissiveCORSMiddleware:
    """纯 ASGI 实现，流式响应也能追加响应头。"""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in cors_headers().items()]
        names = {name for name, _ in headers}

        if scope["method"] == "OPTIONS":
            await send({
                "type": "http.response.start",
                "status": 200,
                "headers": headers + [(b"content-length", b"0")],
            })
            await send({"type": "http.response.body", "body": b""})
            return

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                existing = [h for h in message.get("headers", []) if h[0].lower() not in names]
                message["headers"] = existing + headers
            await send(message)

        await self.app(scope, receive, send_wrapper)
