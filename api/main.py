from __future__ import annotations

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core import config, db
from core.log import configure_logging
from entries import router as entries_router

_STARTED_AT = time.monotonic()

_TOO_LARGE = "Request body too large."


class SpaStaticFiles(StaticFiles):
    """
    Static files with a fallback to `index.html` for unknown paths.
    """

    async def get_response(self, path: str, scope: Scope):
        try:
            return await super().get_response(path, scope)
        except StarletteHTTPException as exc:
            if exc.status_code != 404:
                raise
            return await super().get_response("index.html", scope)


class BodySizeLimitMiddleware:
    """
    Reject request bodies larger than `MAX_BODY_BYTES` with a 413.

    `Content-Length` is checked up front; bodies without one (chunked) are
    counted as they are received.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = config.max_body_bytes()
        length = Headers(scope=scope).get("content-length")
        if length and length.isdigit() and int(length) > limit:
            response = JSONResponse(status_code=413, content={"detail": _TOO_LARGE})
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    # Raised while the route reads its body; FastAPI renders it as the response.
                    raise HTTPException(status_code=413, detail=_TOO_LARGE)
            return message

        await self.app(scope, limited_receive, send)


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging(level=config.log_level(), json_logs=config.log_json())
    # Initialize the DB pool once per process.
    await db.init_pool()
    try:
        yield
    finally:
        await db.close_pool()


def create_app() -> FastAPI:
    app = FastAPI(lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Entries carry large `results` documents, but not unbounded ones.
    app.add_middleware(BodySizeLimitMiddleware)

    @app.get("/api/health")
    def health() -> dict:
        return {"ok": True, "uptime": round(time.monotonic() - _STARTED_AT, 3)}

    app.include_router(entries_router.router, tags=["entries"])

    public_dir = config.public_dir()
    if public_dir.is_dir():
        app.mount("/", SpaStaticFiles(directory=public_dir, html=True), name="static")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.host(), port=config.port())
