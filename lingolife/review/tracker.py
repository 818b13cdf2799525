import json
import logging
from datetime import date, timedelta
from typing import Callable, List, Optional

from lingolife.client.storage import KeyValueStore
from lingolife.config.settings import settings
from lingolife.utils.helpers import safe_json_loads, utc_today

logger = logging.getLogger(__name__)

KEY_PREFIX = "reviewed_words_"


def reviewed_key(day: date) -> str:
    return f"{KEY_PREFIX}{day.isoformat()}"


class ReviewedWordsTracker:
    """
    每日已复习单词记录
    按日期分键保存在客户端本地存储中，日期变化后自然换用新键；
    写入时清理超过保留天数的旧键。
    """

    def __init__(self, store: KeyValueStore, today: Callable[[], date] = None,
                 retention_days: int = None):
        self.store = store
        self.today = today or utc_today
        self.retention_days = (
            settings.REVIEW_HISTORY_RETENTION_DAYS if retention_days is None else retention_days
        )

    def _key(self) -> str:
        return reviewed_key(self.today())

    def reviewed_today(self) -> List[str]:
        """今日已复习的单词ID"""
        ids = safe_json_loads(self.store.get(self._key()), default=[])
        if not isinstance(ids, list):
            logger.warning(f"今日复习记录格式错误，已忽略: {self._key()}")
            return []
        return [str(word_id) for word_id in ids]

    def mark_reviewed(self, word_id: str) -> bool:
        """
        记录单词今日已复习，重复记录不做任何事

        Returns:
            bool: 是否新增了记录
        """
        reviewed = self.reviewed_today()
        if str(word_id) in reviewed:
            return False

        reviewed.append(str(word_id))
        self.store.set(self._key(), json.dumps(reviewed))
        self.purge_expired()
        return True

    def purge_expired(self) -> int:
        """删除超过保留天数的复习记录，返回删除的键数量"""
        cutoff = self.today() - timedelta(days=self.retention_days)
        removed = 0
        for key in self.store.keys():
            if not key.startswith(KEY_PREFIX):
                continue
            day = self._parse_day(key[len(KEY_PREFIX):])
            if day is not None and day < cutoff:
                self.store.delete(key)
                removed += 1
        if removed:
            logger.info(f"已清理{removed}天前的复习记录")
        return removed

    @staticmethod
    def _parse_day(value: str) -> Optional[date]:
        try:
            return date.fromisoformat(value)
        except ValueError:
            return None
