"""
余额适配器测试
"""
import pytest
import requests
from datetime import date

from core.adapters.factory import AdapterFactory
from core.adapters.openai import current_month_range
from core.checker import check_balance
from core.errors import NetworkError, ProviderError, UnsupportedProvider, ValidationError
from conftest import fake_response


class TestProviderMapping:
    """各平台字段映射"""

    def test_deepseek(self, mock_get):
        payload = {"balance_infos": [{"total_balance": 12.5}]}
        mock_get.return_value = fake_response(200, payload)

        info = check_balance("deepseek", "sk-deepseek")

        assert info.balance == 12.5
        assert info.total == 12.5
        assert info.used is None
        assert info.currency == "CNY"
        assert info.details == payload
        args, kwargs = mock_get.call_args
        assert args[0] == "https://api.deepseek.com/user/balance"
        assert kwargs["headers"]["Authorization"] == "Bearer sk-deepseek"

    def test_deepseek_string_amount(self, mock_get):
        mock_get.return_value = fake_response(200, {"balance_infos": [{"total_balance": "8.80"}]})
        info = check_balance("deepseek", "sk-deepseek")
        assert info.balance == pytest.approx(8.8)

    def test_deepseek_missing_fields_default_to_zero(self, mock_get):
        mock_get.return_value = fake_response(200, {"balance_infos": []})
        info = check_balance("deepseek", "sk-deepseek")
        assert info.balance == 0
        assert info.total == 0

    def test_volcengine_uses_raw_key(self, mock_get):
        mock_get.return_value = fake_response(200, {"AvailableBalance": 30, "TotalBalance": 100})

        info = check_balance("volcengine", "volc-raw-key")

        assert info.balance == 30
        assert info.total == 100
        assert info.currency == "CNY"
        _, kwargs = mock_get.call_args
        assert kwargs["headers"]["Authorization"] == "volc-raw-key"

    def test_qwen(self, mock_get):
        mock_get.return_value = fake_response(200, {
            "data": {"available_amount": 7.5, "total_amount": 10, "used_amount": 2.5}
        })

        info = check_balance("qwen", "sk-qwen")

        assert (info.balance, info.total, info.used) == (7.5, 10, 2.5)
        assert info.currency == "CNY"

    def test_siliconflow_used_is_total_minus_balance(self, mock_get):
        mock_get.return_value = fake_response(200, {"data": {"balance": "3.5", "totalBalance": "14"}})

        info = check_balance("siliconflow", "sk-sf")

        assert info.balance == 3.5
        assert info.total == 14
        assert info.used == pytest.approx(10.5)

    @pytest.mark.parametrize("amount", ["Infinity", "-inf", "NaN"])
    def test_non_finite_amount_is_zero(self, mock_get, amount):
        mock_get.return_value = fake_response(200, {"data": {"balance": amount, "totalBalance": "14"}})

        info = check_balance("siliconflow", "sk-sf")

        assert info.balance == 0
        assert info.used == 14

    def test_openai_two_calls(self, mock_get):
        subscription = {"hard_limit_usd": 120}
        usage = {"total_usage": 2050}
        mock_get.side_effect = [fake_response(200, subscription), fake_response(200, usage)]

        info = AdapterFactory.get_adapter("openai").check("sk-openai", today=date(2024, 2, 10))

        assert info.total == 120
        assert info.used == pytest.approx(20.5)
        assert info.balance == pytest.approx(99.5)
        assert info.currency == "USD"
        assert info.details == {"subscription": subscription, "usage": usage}
        assert mock_get.call_count == 2
        _, kwargs = mock_get.call_args_list[1]
        assert kwargs["params"] == {"start_date": "2024-02-01", "end_date": "2024-02-29"}


class TestErrors:
    """错误处理"""

    def test_non_2xx_raises_provider_error(self, mock_get):
        mock_get.return_value = fake_response(401, {"error": "invalid key"})

        with pytest.raises(ProviderError) as exc_info:
            check_balance("deepseek", "sk-bad")

        assert exc_info.value.http_status == 401
        assert "401" in exc_info.value.message

    def test_openai_usage_failure(self, mock_get):
        mock_get.side_effect = [fake_response(200, {"hard_limit_usd": 5}), fake_response(403)]
        with pytest.raises(ProviderError):
            check_balance("openai", "sk-openai")

    def test_transport_error_raises_network_error(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(NetworkError) as exc_info:
            check_balance("qwen", "sk-qwen")

        assert "connection refused" in exc_info.value.message

    def test_unsupported_provider_fails_before_request(self, mock_get):
        with pytest.raises(UnsupportedProvider):
            check_balance("anthropic", "sk-x")
        mock_get.assert_not_called()

    @pytest.mark.parametrize("provider,key", [("", "sk-x"), ("deepseek", ""), ("deepseek", "   "), (None, "sk-x")])
    def test_missing_input(self, mock_get, provider, key):
        with pytest.raises(ValidationError):
            check_balance(provider, key)
        mock_get.assert_not_called()


def test_all_providers_registered():
    assert AdapterFactory.providers() == ["deepseek", "openai", "qwen", "siliconflow", "volcengine"]


def test_current_month_range_december():
    assert current_month_range(date(2023, 12, 31)) == ("2023-12-01", "2023-12-31")
