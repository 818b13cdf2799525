"""
客户端本地存储
提供类似浏览器 localStorage 的键值存储，值均为字符串。
用于保存每日已复习单词和登录会话。
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from lingolife.utils.helpers import safe_json_loads

logger = logging.getLogger(__name__)

TOKEN_KEY = "lingolife_token"
USER_KEY = "lingolife_user"


class KeyValueStore(ABC):
    """键值存储接口"""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str):
        pass

    @abstractmethod
    def delete(self, key: str):
        pass

    @abstractmethod
    def keys(self) -> List[str]:
        pass


class MemoryKeyValueStore(KeyValueStore):
    """内存键值存储，主要用于测试"""

    def __init__(self, initial: Dict[str, str] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str):
        with self._lock:
            self._data[key] = value

    def delete(self, key: str):
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data.keys())


class JsonFileKeyValueStore(KeyValueStore):
    """
    基于JSON文件的持久化键值存储
    每次写入都整体落盘，先写临时文件再替换，避免写一半时文件损坏
    """

    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._data = self._load()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        data = safe_json_loads(self.path.read_text(encoding="utf-8"), default=None)
        if not isinstance(data, dict):
            logger.warning(f"本地存储文件损坏，已忽略: {self.path}")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _flush(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str):
        with self._lock:
            self._data[key] = value
            self._flush()

    def delete(self, key: str):
        with self._lock:
            if self._data.pop(key, None) is not None:
                self._flush()

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data.keys())


class AuthSessionStore:
    """保存登录后的 {token, user}，用于下次启动时恢复会话"""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def save(self, token: str, user: Dict[str, Any]):
        self.store.set(TOKEN_KEY, token)
        self.store.set(USER_KEY, json.dumps(user, ensure_ascii=False))

    def load(self) -> Optional[Tuple[str, Dict[str, Any]]]:
        token = self.store.get(TOKEN_KEY)
        raw_user = self.store.get(USER_KEY)
        if not token or not raw_user:
            return None

        user = safe_json_loads(raw_user)
        if not isinstance(user, dict):
            logger.warning("保存的用户信息无法解析，已清除登录会话")
            self.clear()
            return None
        return token, user

    def token(self) -> Optional[str]:
        return self.store.get(TOKEN_KEY)

    def user_id(self) -> Optional[str]:
        saved = self.load()
        if saved is None:
            return None
        return saved[1].get("id")

    def clear(self):
        self.store.delete(TOKEN_KEY)
        self.store.delete(USER_KEY)
