"""
アプリケーション設定管理モジュール
環境変数の読み込み、設定オブジェクトの構築、クライアント初期化
"""
import os

from dotenv import load_dotenv
from openai import OpenAI
from pydantic import BaseModel, ConfigDict

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_GROQ_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_GROQ_MODEL = "llama-3.3-70b-versatile"


class Settings(BaseModel):
    """プロセス起動時に一度だけ構築される設定（変更不可）"""
    model_config = ConfigDict(frozen=True)

    # Groq設定
    groq_api_key: str
    groq_base_url: str = DEFAULT_GROQ_BASE_URL
    groq_model: str = DEFAULT_GROQ_MODEL

    # Gmail設定
    gmail_user: str = ""
    gmail_pass: str = ""   # 16桁のアプリパスワード

    # サーバー設定
    port: int = 3000
    static_dir: str = "public"
    log_level: str = "INFO"

    @property
    def gmail_configured(self) -> bool:
        return bool(self.gmail_user and self.gmail_pass)


def load_settings() -> Settings:
    """
    環境変数（.env含む）から設定を読み込む

    Returns:
        Settings

    Raises:
        RuntimeError: GROQ_API_KEY が未設定の場合
    """
    # 環境変数の読み込み
    load_dotenv()

    groq_api_key = os.getenv("GROQ_API_KEY", "")

    # =========================
    # 設定の検証
    # =========================
    if not groq_api_key:
        raise RuntimeError("GROQ_API_KEY is not set.")

    settings = Settings(
        groq_api_key=groq_api_key,
        groq_base_url=os.getenv("GROQ_BASE_URL", DEFAULT_GROQ_BASE_URL),
        groq_model=os.getenv("GROQ_MODEL", DEFAULT_GROQ_MODEL),
        gmail_user=os.getenv("GMAIL_USER", ""),
        gmail_pass=os.getenv("GMAIL_PASS", ""),
        port=int(os.getenv("PORT", "3000")),
        static_dir=os.getenv("STATIC_DIR", "public"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )

    if not settings.gmail_configured:
        logger.warning("gmail_not_configured", detail="email sharing will fail until GMAIL_USER/GMAIL_PASS are set")

    return settings


def create_completion_client(settings: Settings) -> OpenAI:
    """
    Groq（OpenAI互換API）用のクライアントを生成

    リトライは行わない（1回のみ送信）。
    """
    return OpenAI(
        api_key=settings.groq_api_key,
        base_url=settings.groq_base_url,
        max_retries=0,
    )
