"""
前端后端代理客户端测试
"""
import pytest
import requests
from unittest.mock import patch

from core.errors import NetworkError, ProviderError
from frontend import client
from conftest import fake_response


@patch("frontend.client.requests.post")
def test_check_via_backend(mock_post):
    mock_post.return_value = fake_response(200, {"balance": 4.5, "total": 10, "currency": "CNY"})

    info = client.check_via_backend("qwen", "sk-1")

    assert info.balance == 4.5
    assert info.total == 10
    _, kwargs = mock_post.call_args
    assert kwargs["json"] == {"provider": "qwen", "apiKey": "sk-1"}


@patch("frontend.client.requests.post")
def test_check_via_backend_error_body(mock_post):
    mock_post.return_value = fake_response(500, {"error": "DeepSeek API 错误: 401"})

    with pytest.raises(ProviderError) as exc_info:
        client.check_via_backend("deepseek", "sk-bad")

    assert exc_info.value.message == "DeepSeek API 错误: 401"


@patch("frontend.client.requests.post")
def test_check_via_backend_unreachable(mock_post):
    mock_post.side_effect = requests.ConnectionError("refused")

    with pytest.raises(NetworkError):
        client.check_via_backend("deepseek", "sk-1")


def test_error_message_reads_validation_detail():
    resp = fake_response(422, {"detail": [{"msg": "field required"}, {"msg": "bad page"}]})
    assert client.error_message(resp) == "field required; bad page"


def test_admin_headers():
    assert client.admin_headers("t0ken") == {"X-Admin-Token": "t0ken"}
    assert client.admin_headers(None) == {"X-Admin-Token": ""}
