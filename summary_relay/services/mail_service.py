"""
メール共有サービスモジュール
編集済みの要約をGmailで送信する
"""
import html
from typing import Any, List

import structlog

from summary_relay.config import Settings
from summary_relay.exceptions import DeliveryError, ValidationError
from summary_relay.utils.gmail_utils import send_html_via_gmail

logger = structlog.get_logger(__name__)

SUBJECT = "Meeting Summary"


def normalize_recipients(recipients: Any) -> List[str]:
    """
    宛先を正規化する

    配列ならそのまま、文字列ならカンマで分割。
    各要素は前後の空白を除去し、空要素は捨てる（順序は維持）。
    """
    if recipients is None:
        return []
    if isinstance(recipients, str):
        tokens = recipients.split(",")
    elif isinstance(recipients, (list, tuple)):
        tokens = recipients
    else:
        return []
    return [t.strip() for t in tokens if isinstance(t, str) and t.strip()]


def build_html_body(summary: str) -> str:
    """要約をHTMLエスケープして本文に埋め込む"""
    return (
        '<div style="font-family:Arial,sans-serif">'
        f"<h2>{SUBJECT}</h2>"
        f'<div style="white-space:pre-wrap">{html.escape(summary)}</div>'
        "</div>"
    )


def share_summary(settings: Settings, summary: Any, recipients: Any) -> str:
    """
    要約を宛先にメール送信する

    Args:
        settings: 送信元（GMAIL_USER / GMAIL_PASS）を含む設定
        summary: 要約テキスト（必須）
        recipients: 宛先（配列 or カンマ区切り文字列）

    Returns:
        送信したメールの Message-ID

    Raises:
        ValidationError: summary または宛先が空の場合（送信しない）
        DeliveryError: 送信に失敗した場合
    """
    if not isinstance(summary, str) or not summary.strip():
        raise ValidationError("Summary required")
    if not recipients:
        raise ValidationError("Recipients required")

    to = normalize_recipients(recipients)
    if not to:
        raise ValidationError("Recipients required")

    if not settings.gmail_configured:
        logger.error("email_send_failed", reason="gmail credentials not configured")
        raise DeliveryError()

    try:
        message_id = send_html_via_gmail(
            settings.gmail_user,
            settings.gmail_pass,
            to,
            SUBJECT,
            build_html_body(summary),
        )
    except Exception as e:
        logger.exception("email_send_failed", recipients=len(to))
        raise DeliveryError() from e

    logger.info("email_sent", message_id=message_id, recipients=len(to))
    return message_id
