#!/usr/bin/env python3
"""
认证服务模块
处理用户注册、登录、密码哈希以及JWT令牌的签发与校验
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import bcrypt
from jose import JWTError, jwt

from lingolife.config.settings import Settings, settings as default_settings
from lingolife.models.user import User
from lingolife.repositories.user_repository import UserRepository
from lingolife.utils.exceptions import AuthError, ConflictError, ValidationError

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"

# bcrypt 只处理前72字节，新版本对更长的输入直接报错
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """使用bcrypt生成加盐哈希"""
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """校验密码与哈希是否匹配"""
    if not password_hash or not password:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # 哈希格式损坏视为不匹配
        return False


def create_access_token(user: User, config: Settings = None) -> str:
    """签发携带用户ID、用户名、邮箱的JWT"""
    config = config or default_settings
    expire = datetime.now(timezone.utc) + timedelta(days=config.ACCESS_TOKEN_EXPIRE_DAYS)
    payload = {
        "userId": user.id,
        "username": user.username,
        "email": user.email,
        "exp": expire
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def verify_token(token: str, config: Settings = None) -> Dict[str, Any]:
    """
    校验并解码JWT

    Raises:
        AuthError: 令牌无效或已过期（403）
    """
    config = config or default_settings
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"令牌校验失败: {e}")
        raise AuthError("Invalid or expired token", status_code=403) from e

    if not payload.get("userId"):
        raise AuthError("Invalid or expired token", status_code=403)
    return payload


class AuthService:
    def __init__(self, user_repo: UserRepository, config: Settings = None):
        self.user_repo = user_repo
        self.config = config or default_settings

    def register(self, username: Optional[str], email: Optional[str],
                 password: Optional[str]) -> Tuple[User, str]:
        """
        用户注册

        Returns:
            (用户, 令牌)

        Raises:
            ValidationError: 字段缺失或密码过短
            ConflictError: 用户名或邮箱已存在
        """
        username = (username or "").strip()
        email = (email or "").strip()
        if not username or not email or not password:
            raise ValidationError("Username, email, and password are required")

        if len(password) < self.config.MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {self.config.MIN_PASSWORD_LENGTH} characters"
            )

        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

        if self.user_repo.exists(username, email):
            raise ConflictError("Username or email already exists")

        user = self.user_repo.create_user(username, email, hash_password(password))
        logger.info(f"新用户注册成功: {user.id} - {user.username}")
        return user, create_access_token(user, self.config)

    def login(self, username: Optional[str], password: Optional[str]) -> Tuple[User, str]:
        """用户登录，用户不存在和密码错误返回相同的错误信息"""
        if not username or not password:
            raise ValidationError("Username and password are required")

        user = self.user_repo.get_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            logger.info(f"登录失败: {username}")
            raise AuthError(INVALID_CREDENTIALS)

        logger.info(f"用户登录成功: {user.id}")
        return user, create_access_token(user, self.config)
