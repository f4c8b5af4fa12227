"""
リレー処理の例外定義
各例外は呼び出し元に返すメッセージとHTTPステータスを持つ
"""
from typing import Optional


class RelayError(Exception):
    """リレー処理の基底例外"""
    status_code = 500
    default_message = "Unexpected server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(RelayError):
    """必須入力の欠落（外部呼び出し前に検出）"""
    status_code = 400
    default_message = "Invalid request body"


class UpstreamError(RelayError):
    """要約APIが明示的なエラー、または要約テキストなしの応答を返した"""
    default_message = "Groq returned no summary content"


class DeliveryError(RelayError):
    """メール送信の失敗"""
    default_message = "Email send failed"


class UnexpectedError(RelayError):
    """上記以外の想定外エラー"""
