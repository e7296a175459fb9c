"""
保存合并逻辑测试
"""
import pytest

from core.reconciler import reconcile
from core.results import QueryResult


def success(key, balance, currency="CNY", provider="deepseek"):
    return QueryResult(api_key=key, provider=provider, status="success", balance=balance, currency=currency)


class TestLowBalance:

    def test_boundary_is_skipped(self):
        plan = reconcile([success("k1", 0.1)], {})
        assert plan.skipped_count == 1
        assert plan.to_insert == []

    def test_just_above_boundary_is_kept(self):
        plan = reconcile([success("k1", 0.10001)], {})
        assert plan.skipped_count == 0
        assert [r.api_key for r in plan.to_insert] == ["k1"]

    @pytest.mark.parametrize("balance", [0, -3, None])
    def test_zero_negative_and_missing_are_skipped(self, balance):
        plan = reconcile([success("k1", balance)], {})
        assert plan.skipped_count == 1

    def test_custom_threshold(self):
        plan = reconcile([success("k1", 0.5)], {}, threshold=1.0)
        assert plan.skipped_count == 1


class TestRouting:

    def test_unchanged(self):
        existing = {"k1": {"key": "k1", "balance": 5, "currency": "CNY"}}
        plan = reconcile([success("k1", 5, "CNY")], existing)
        assert [r.api_key for r in plan.unchanged] == ["k1"]
        assert plan.to_update == []
        assert not plan.has_writes

    def test_balance_changed(self):
        existing = {"k1": {"key": "k1", "balance": 5, "currency": "CNY"}}
        plan = reconcile([success("k1", 7, "CNY")], existing)
        assert len(plan.to_update) == 1
        assert plan.to_update[0].record is existing["k1"]
        assert plan.to_update[0].result.balance == 7

    def test_currency_changed(self):
        existing = {"k1": {"key": "k1", "balance": 5, "currency": "CNY"}}
        plan = reconcile([success("k1", 5, "USD")], existing)
        assert len(plan.to_update) == 1

    def test_exact_comparison_without_tolerance(self):
        existing = {"k1": {"key": "k1", "balance": 0.3, "currency": "CNY"}}
        plan = reconcile([success("k1", 0.1 + 0.2, "CNY")], existing)
        assert len(plan.to_update) == 1

    def test_new_key_is_inserted(self):
        existing = {"k1": {"key": "k1", "balance": 5, "currency": "CNY"}}
        plan = reconcile([success("k2", 0.2)], existing)
        assert [r.api_key for r in plan.to_insert] == ["k2"]

    def test_existing_orm_like_objects(self):
        class Record:
            key = "k1"
            balance = 5.0
            currency = "CNY"

        plan = reconcile([success("k1", 5.0)], {"k1": Record()})
        assert len(plan.unchanged) == 1


class TestBatch:

    def test_non_success_results_ignored(self):
        results = [
            QueryResult(api_key="k1", provider="qwen", status="error", error="boom"),
            QueryResult(api_key="k2", provider="qwen", status="loading"),
            success("k3", 3),
        ]
        plan = reconcile(results, {})
        assert [r.api_key for r in plan.to_insert] == ["k3"]
        assert plan.skipped_count == 0

    def test_duplicate_keys_in_batch_use_last_result(self):
        plan = reconcile([success("k1", 3), success("k1", 4)], {})
        assert len(plan.to_insert) == 1
        assert plan.to_insert[0].balance == 4

    def test_mixed_batch(self):
        existing = {
            "same": {"balance": 2, "currency": "CNY"},
            "changed": {"balance": 2, "currency": "CNY"},
        }
        results = [success("same", 2), success("changed", 9), success("new", 1), success("low", 0.05)]

        plan = reconcile(results, existing)

        assert [r.api_key for r in plan.unchanged] == ["same"]
        assert [p.result.api_key for p in plan.to_update] == ["changed"]
        assert [r.api_key for r in plan.to_insert] == ["new"]
        assert [r.api_key for r in plan.skipped] == ["low"]
