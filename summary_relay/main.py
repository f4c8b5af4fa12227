"""
会議要約リレー API
文字起こし → Groq要約 → 編集 → Gmail共有
"""
import os
from pathlib import Path
from typing import Optional

import structlog
import uvicorn
from dotenv import load_dotenv
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from openai import OpenAI
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from summary_relay.config import Settings, create_completion_client, load_settings
from summary_relay.exceptions import RelayError, UnexpectedError, ValidationError
from summary_relay.logging_config import configure_logging
from summary_relay.models import GenerateRequest, GenerateResponse, ShareRequest, ShareResponse
from summary_relay.services.mail_service import share_summary
from summary_relay.services.summary_service import generate_summary

logger = structlog.get_logger(__name__)

MAX_BODY_BYTES = 2 * 1024 * 1024  # 2MB

router = APIRouter()


# =========================
# 依存関係
# =========================
def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_completion_client(request: Request) -> OpenAI:
    return request.app.state.client_oa


# =========================
# FastAPIエンドポイント
# =========================
@router.get("/health")
def health():
    return {"ok": True}


@router.post("/api/generate", response_model=GenerateResponse, response_model_exclude_none=True)
def generate(
    body: Optional[GenerateRequest] = None,
    settings: Settings = Depends(get_settings),
    client: OpenAI = Depends(get_completion_client),
):
    body = body or GenerateRequest()
    try:
        summary = generate_summary(client, body.transcript, body.instruction, model=settings.groq_model)
    except RelayError:
        raise
    except Exception as e:
        logger.exception("generate_failed")
        raise UnexpectedError() from e
    return GenerateResponse(ok=True, summary=summary)


@router.post("/api/share", response_model=ShareResponse, response_model_exclude_none=True)
def share(body: Optional[ShareRequest] = None, settings: Settings = Depends(get_settings)):
    body = body or ShareRequest()
    try:
        message_id = share_summary(settings, body.summary, body.recipients)
    except RelayError:
        raise
    except Exception as e:
        logger.exception("share_failed")
        raise UnexpectedError() from e
    return ShareResponse(ok=True, id=message_id)


# =========================
# エラーハンドラ
# =========================
async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    if isinstance(exc, ValidationError):
        logger.info("request_rejected", path=request.url.path, reason=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("request_rejected", path=request.url.path, reason="invalid body", errors=exc.errors())
    return JSONResponse(status_code=400, content={"ok": False, "error": "Invalid request body"})


class BodySizeLimitMiddleware:
    """
    リクエストボディが上限を超えたら 413 で拒否

    Content-Length がない（chunked）場合も受信したバイト数で判定する。
    受信済みのボディはそのまま後段へ渡す。
    """

    def __init__(self, app: ASGIApp, max_bytes: int = MAX_BODY_BYTES):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_bytes:
            await self._reject(scope, receive, send)
            return

        chunks = []
        total = 0
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] == "http.disconnect":
                return
            chunk = message.get("body", b"")
            total += len(chunk)
            if total > self.max_bytes:
                await self._reject(scope, receive, send)
                return
            chunks.append(chunk)
            more_body = message.get("more_body", False)

        body = b"".join(chunks)
        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)

    async def _reject(self, scope: Scope, receive: Receive, send: Send) -> None:
        logger.info("request_rejected", path=scope.get("path"), reason="body too large")
        response = JSONResponse(status_code=413, content={"ok": False, "error": "Request body too large"})
        await response(scope, receive, send)


def create_app(settings: Optional[Settings] = None, completion_client: Optional[OpenAI] = None) -> FastAPI:
    """
    FastAPIアプリを生成

    Args:
        settings: 未指定なら環境変数から読み込む
        completion_client: 未指定なら settings から生成する
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Meeting Summary Relay (Groq + Gmail)")
    app.state.settings = settings
    app.state.client_oa = completion_client or create_completion_client(settings)

    app.add_middleware(BodySizeLimitMiddleware, max_bytes=MAX_BODY_BYTES)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RelayError, relay_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(router)

    # 静的ファイル（ブラウザUI）はルートに配信
    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
    else:
        logger.info("static_dir_missing", static_dir=str(static_dir))

    return app


def run() -> None:
    # load_settings() の警告より先にログを設定する
    load_dotenv()
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    settings = load_settings()
    app = create_app(settings)
    logger.info("server_starting", url=f"http://localhost:{settings.port}")
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
