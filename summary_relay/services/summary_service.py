"""
要約サービスモジュール
Groq（OpenAI互換API）で会議の文字起こしを要約する
"""
from typing import Any, Dict, List, Optional

import structlog
from openai import APIStatusError, OpenAI

from summary_relay.config import DEFAULT_GROQ_MODEL
from summary_relay.exceptions import UpstreamError, ValidationError
from summary_relay.models import CompletionReply

logger = structlog.get_logger(__name__)

DEFAULT_INSTRUCTION = "Summarize in bullet points for executives."
NO_CONTENT_MESSAGE = "Groq returned no summary content"
TEMPERATURE = 0.2

SYSTEM_PROMPT = """You are a meeting summarizer.
- Follow user instructions exactly.
- Prefer bullet points.
- Include Action Items, Decisions, Open Questions if present.
- Do not invent info."""


def build_messages(transcript: str, instruction: Optional[str] = None) -> List[Dict[str, str]]:
    """
    system / user の2メッセージを組み立てる

    Args:
        transcript: 文字起こしテキスト
        instruction: ユーザー指示（空なら既定の指示）

    Returns:
        chat.completions に渡す messages
    """
    user_instruction = (instruction or "").strip() or DEFAULT_INSTRUCTION
    user_prompt = f"Instruction: {user_instruction}\n\nTranscript:\n{transcript}"
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


def request_completion(client: OpenAI, model: str, messages: List[Dict[str, str]]) -> Dict[str, Any]:
    """
    要約APIを1回だけ呼び出し、応答をそのまま辞書で返す

    HTTPエラー応答（4xx/5xx）も {"error": {...}} 形式の辞書に変換して返す。
    接続エラー等はそのまま送出する。
    """
    try:
        resp = client.chat.completions.create(
            model=model,
            temperature=TEMPERATURE,
            messages=messages,
        )
        payload = resp.model_dump()
    except APIStatusError as e:
        payload = _error_payload(e)

    logger.info("groq_raw_response", payload=payload)
    return payload


def _error_payload(e: APIStatusError) -> Dict[str, Any]:
    body = e.body
    if isinstance(body, dict):
        if isinstance(body.get("error"), dict):
            return body
        if body.get("message"):
            return {"error": body}
    return {"error": {"message": e.message, "status_code": e.status_code}}


def parse_completion(payload: Any) -> CompletionReply:
    """
    応答の形を判定して CompletionReply に正規化する

    判定順: error → message.content → text → empty
    想定外の型はすべて次の判定へ進む（例外は出さない）。
    """
    if not isinstance(payload, dict):
        return CompletionReply(kind="empty")

    error = payload.get("error")
    if error is not None:
        if isinstance(error, dict):
            message = error.get("message")
        else:
            message = error
        return CompletionReply(kind="error", text=str(message or "Groq request failed"))

    choices = payload.get("choices")
    first = choices[0] if isinstance(choices, list) and choices else None
    if not isinstance(first, dict):
        return CompletionReply(kind="empty")

    message = first.get("message")
    content = message.get("content") if isinstance(message, dict) else None
    if isinstance(content, str) and content.strip():
        return CompletionReply(kind="content", text=content.strip())

    # レガシー形式（completions API）へのフォールバック
    text = first.get("text")
    if isinstance(text, str) and text.strip():
        return CompletionReply(kind="text", text=text.strip())

    return CompletionReply(kind="empty")


def generate_summary(
    client: OpenAI,
    transcript: Optional[str],
    instruction: Optional[str] = None,
    model: str = DEFAULT_GROQ_MODEL,
) -> str:
    """
    文字起こしテキストを要約する

    Args:
        client: Groq用のOpenAIクライアント
        transcript: 文字起こしテキスト（必須）
        instruction: ユーザー指示（任意）
        model: モデルID

    Returns:
        要約テキスト（前後の空白除去済み）

    Raises:
        ValidationError: transcript が空の場合（APIは呼ばない）
        UpstreamError: APIがエラーを返した、または要約テキストがない場合
    """
    if not transcript or not transcript.strip():
        raise ValidationError("Transcript required")

    payload = request_completion(client, model, build_messages(transcript, instruction))
    reply = parse_completion(payload)

    if reply.kind == "error":
        logger.error("groq_error", error=reply.text)
        raise UpstreamError(reply.text)
    if reply.kind == "empty":
        logger.error("groq_empty_response")
        raise UpstreamError(NO_CONTENT_MESSAGE)
    return reply.text
