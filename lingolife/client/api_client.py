"""
LingoLife HTTP接口客户端
封装后端接口调用，并实现单词仓库接口，复习会话可以直接基于它运行。
"""

import logging
from typing import Any, Dict, List, Optional, Type

import requests

from lingolife.client.storage import AuthSessionStore, KeyValueStore, MemoryKeyValueStore
from lingolife.config.settings import settings
from lingolife.repositories.word_repository import WordRepository
from lingolife.utils.exceptions import (
    AuthError, ConflictError, LingoLifeError, NotFoundError,
    StorageError, UpstreamError, ValidationError
)

logger = logging.getLogger(__name__)

_STATUS_ERRORS = {
    400: ValidationError,
    401: AuthError,
    403: AuthError,
    404: NotFoundError,
    409: ConflictError,
}


class LingoLifeClient(WordRepository):
    """后端接口客户端，登录令牌保存在本地存储中"""

    backend_name = "http"

    def __init__(self, base_url: str = None, store: KeyValueStore = None,
                 session: Any = None, timeout: int = 10):
        super().__init__()
        self.base_url = (base_url or f"http://localhost:{settings.PORT}").rstrip("/")
        self.auth = AuthSessionStore(store or MemoryKeyValueStore())
        # requests.Session 或接口兼容的客户端（如 TestClient）
        self.http = session or requests.Session()
        self.timeout = timeout

    # -------- 基础请求 --------
    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self.auth.token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(self, method: str, path: str,
                 failure: Type[LingoLifeError] = StorageError, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(
                method, url, headers=self._headers(), timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            logger.error(f"请求失败 {method} {path}: {e}")
            raise failure(f"Request failed: {e}") from e

        if response.status_code >= 400:
            raise self._error_from_response(response, failure)
        return response.json()

    @staticmethod
    def _error_from_response(response, failure: Type[LingoLifeError]) -> LingoLifeError:
        try:
            message = response.json().get("error")
        except ValueError:
            message = None
        message = message or f"HTTP error! status: {response.status_code}"

        error_class = _STATUS_ERRORS.get(response.status_code, failure)
        logger.warning(f"接口返回错误 {response.status_code}: {message}")
        return error_class(message, status_code=response.status_code)

    def _resolve_user_id(self, user_id: Optional[str]) -> str:
        return user_id or self.auth.user_id() or settings.DEFAULT_USER_ID

    # -------- 认证 --------
    def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        data = self._request("POST", "/api/auth/register", json={
            "username": username, "email": email, "password": password
        })
        self.auth.save(data["token"], data["user"])
        return data["user"]

    def login(self, username: str, password: str) -> Dict[str, Any]:
        data = self._request("POST", "/api/auth/login", json={
            "username": username, "password": password
        })
        self.auth.save(data["token"], data["user"])
        return data["user"]

    def logout(self):
        self.auth.clear()

    def me(self) -> Dict[str, Any]:
        return self._request("GET", "/api/auth/me")["user"]

    def restore_session(self) -> Optional[Dict[str, Any]]:
        """恢复上次保存的登录会话，令牌失效时清除"""
        if self.auth.load() is None:
            return None
        try:
            return self.me()
        except AuthError:
            logger.info("保存的登录令牌已失效")
            self.auth.clear()
            return None

    # -------- 词典 --------
    def lookup(self, term: str) -> Dict[str, Any]:
        return self._request(
            "GET", "/api/dictionary/youdao", failure=UpstreamError, params={"q": term}
        )

    # -------- 单词仓库接口 --------
    def list_words(self, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/words", params={"userId": self._resolve_user_id(user_id)})

    def create_word(self, user_id: Optional[str], draft: Dict[str, Any]) -> Dict[str, Any]:
        body = {
            "userId": self._resolve_user_id(user_id),
            "term": draft.get("term"),
            "translation": draft.get("translation"),
            "phonetic": draft.get("phonetic"),
            "partOfSpeech": draft.get("partOfSpeech", draft.get("part_of_speech")),
            "definition": draft.get("definition"),
        }
        return self._request("POST", "/api/words", json=body)

    def record_outcome(self, user_id: Optional[str], word_id: str, known: bool) -> Dict[str, Any]:
        return self._request("PUT", f"/api/words/{word_id}", json={
            "known": known, "userId": self._resolve_user_id(user_id)
        })

    def fetch_review_candidates(self, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        return self._request(
            "GET", "/api/words/review", params={"userId": self._resolve_user_id(user_id)}
        )
