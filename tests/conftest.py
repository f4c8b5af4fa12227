"""
テスト用フィクスチャ

- Groqクライアントはモック（実APIは呼ばない）
- 静的ファイルは存在しないディレクトリを指定してマウントしない
"""
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from summary_relay.config import Settings
from summary_relay.main import create_app


@pytest.fixture
def settings(tmp_path):
    return Settings(
        groq_api_key="test-key",
        gmail_user="sender@example.com",
        gmail_pass="app-password",
        static_dir=str(tmp_path / "missing"),
    )


@pytest.fixture
def completion_client():
    """chat.completions.create(...).model_dump() が payload を返すモック"""
    client = MagicMock()
    client.chat.completions.create.return_value.model_dump.return_value = {
        "choices": [{"message": {"role": "assistant", "content": "- Summary"}}],
    }
    return client


@pytest.fixture
def client(settings, completion_client):
    app = create_app(settings, completion_client=completion_client)
    return TestClient(app)
