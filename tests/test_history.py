"""
本地查询历史测试
"""
import json
import pytest
from datetime import datetime, timedelta

from core.results import QueryResult
from frontend.history import HISTORY_NAMESPACE, HistoryStore


@pytest.fixture
def store(tmp_path):
    return HistoryStore(path=str(tmp_path / "history.json"))


def result(key, status="success", balance=1.0):
    return QueryResult(api_key=key, provider="deepseek", status=status, balance=balance)


def test_empty_when_missing(store):
    assert store.load() == []


def test_keeps_newest_fifty(store):
    start = datetime(2024, 1, 1)
    for i in range(51):
        store.save([result(f"k{i}")], timestamp=start + timedelta(seconds=i))

    entries = store.load()

    assert len(entries) == 50
    assert entries[0]["api_key"] == "k50"
    assert entries[-1]["api_key"] == "k1"


def test_batch_order_kept_at_front(store):
    store.save([result("old")])
    store.save([result("a"), result("b", status="error", balance=None)])

    assert [e["api_key"] for e in store.load()] == ["a", "b", "old"]


def test_loading_results_not_saved(store):
    store.save([result("k1", status="loading", balance=None)])
    assert store.load() == []


def test_entries_carry_timestamp(store):
    stamp = datetime(2024, 5, 1, 8, 30)
    store.save([result("k1")], timestamp=stamp)
    assert store.load()[0]["timestamp"] == stamp.isoformat()


def test_clear(store):
    store.save([result("k1")])
    store.clear()
    assert store.load() == []


def test_corrupt_file_loads_as_empty(store):
    with open(store.path, "w", encoding="utf-8") as f:
        f.write("{not json")

    assert store.load() == []
    store.save([result("k1")])
    assert [e["api_key"] for e in store.load()] == ["k1"]


def test_other_namespaces_preserved(store):
    with open(store.path, "w", encoding="utf-8") as f:
        json.dump({"preferences": {"provider": "qwen"}}, f)

    store.save([result("k1")])

    with open(store.path, encoding="utf-8") as f:
        document = json.load(f)
    assert document["preferences"] == {"provider": "qwen"}
    assert len(document[HISTORY_NAMESPACE]) == 1
