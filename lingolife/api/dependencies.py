import logging
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from lingolife.repositories.user_repository import UserRepository
from lingolife.repositories.word_repository import WordRepository
from lingolife.services.auth_service import AuthService, verify_token
from lingolife.services.dictionary_service import DictionaryService
from lingolife.utils.database import get_db
from lingolife.utils.exceptions import AuthError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_word_repository(request: Request, db: Session = Depends(get_db)) -> WordRepository:
    return request.app.state.backend.word_repository(db)


def get_user_repository(request: Request, db: Session = Depends(get_db)) -> UserRepository:
    return request.app.state.backend.user_repository(db)


def get_auth_service(request: Request,
                     users: UserRepository = Depends(get_user_repository)) -> AuthService:
    return AuthService(users, request.app.state.settings)


def get_dictionary_service(request: Request) -> DictionaryService:
    return request.app.state.dictionary_service


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Dict[str, Any]:
    """必须携带令牌：缺失401，无效或过期403"""
    if credentials is None:
        raise AuthError("Access token required")
    return verify_token(credentials.credentials, request.app.state.settings)


def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Optional[Dict[str, Any]]:
    """可选令牌：未携带时为None，携带了无效令牌仍然拒绝"""
    if credentials is None:
        return None
    return verify_token(credentials.credentials, request.app.state.settings)


def resolve_user_id(request: Request, requested: Optional[str],
                    token_user: Optional[Dict[str, Any]]) -> str:
    """
    确定本次操作的用户
    - 携带令牌时使用令牌中的用户，显式指定的其他用户被拒绝
    - 未携带令牌时使用请求中的用户，缺省为默认用户
    """
    if token_user:
        token_user_id = str(token_user["userId"])
        if requested and requested != token_user_id:
            logger.warning(f"令牌用户 {token_user_id} 尝试访问用户 {requested} 的单词")
            raise AuthError("Access denied for this user", status_code=403)
        return token_user_id
    return requested or request.app.state.settings.DEFAULT_USER_ID
