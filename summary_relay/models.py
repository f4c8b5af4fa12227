"""
データモデル定義
"""
from typing import List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, Field


class GenerateRequest(BaseModel):
    """要約生成リクエスト"""
    transcript: Optional[str] = None
    # ブラウザのフォームは "prompt" で送ってくる
    instruction: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("instruction", "prompt"),
    )


class GenerateResponse(BaseModel):
    ok: bool
    summary: Optional[str] = None
    error: Optional[str] = None


class ShareRequest(BaseModel):
    """メール共有リクエスト"""
    summary: Optional[str] = None
    # 配列、またはカンマ区切り文字列（フォームは "to" で送ってくる）
    recipients: Union[List[str], str, None] = Field(
        default=None,
        validation_alias=AliasChoices("recipients", "to"),
    )


class ShareResponse(BaseModel):
    ok: bool
    id: Optional[str] = None
    error: Optional[str] = None


class CompletionReply(BaseModel):
    """
    要約APIの応答を正規化した結果

    kind:
        content: choices[0].message.content が取得できた
        text:    レガシー形式の choices[0].text が取得できた
        error:   応答に error フィールドがあった（text にそのメッセージ）
        empty:   要約テキストが見つからなかった
    """
    kind: Literal["content", "text", "error", "empty"]
    text: str = ""
