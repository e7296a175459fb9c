"""
本地查询历史。

历史只保存在本机的一个 JSON 文件里，不进入共享数据库。
每次保存都是 读取 -> 合并 -> 截断 -> 写回，最多保留最近 50 条，最新的在前。
"""
import os
import json
import logging
import tempfile
from datetime import datetime
from typing import Iterable, List, Optional

from core.results import QueryResult

logger = logging.getLogger(__name__)

HISTORY_NAMESPACE = "balance_history"
MAX_HISTORY = 50
DEFAULT_HISTORY_PATH = os.getenv(
    "KEYPOOL_HISTORY_PATH",
    os.path.join(os.path.expanduser("~"), ".keypool", "history.json")
)


class HistoryStore:

    def __init__(self, path: Optional[str] = None, limit: int = MAX_HISTORY):
        self.path = path or DEFAULT_HISTORY_PATH
        self.limit = limit

    def _read_document(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"读取历史记录失败 {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write_document(self, document: dict):
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def load(self) -> List[dict]:
        entries = self._read_document().get(HISTORY_NAMESPACE, [])
        return entries if isinstance(entries, list) else []

    def save(self, results: Iterable[QueryResult], timestamp: Optional[datetime] = None) -> List[dict]:
        """把一批查询结果加到最前面，超出上限的旧记录被丢弃"""
        stamp = (timestamp or datetime.now()).isoformat()
        new_entries = [
            dict(result.dict(), timestamp=stamp)
            for result in results
            if result.status != "loading"
        ]
        if not new_entries:
            return self.load()

        document = self._read_document()
        existing = document.get(HISTORY_NAMESPACE, [])
        if not isinstance(existing, list):
            existing = []
        merged = (new_entries + existing)[:self.limit]
        document[HISTORY_NAMESPACE] = merged
        self._write_document(document)
        return merged

    def clear(self):
        document = self._read_document()
        document[HISTORY_NAMESPACE] = []
        self._write_document(document)
