import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from lingolife.models.base import new_id, utc_now
from lingolife.models.user import User
from lingolife.repositories.base import BaseRepository
from lingolife.utils.exceptions import ConflictError, StorageError

logger = logging.getLogger(__name__)


class UserRepository(ABC):
    """用户仓库接口，与单词仓库使用同一种存储后端"""

    @abstractmethod
    def get_by_id(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    def get_by_username(self, username: str) -> Optional[User]:
        pass

    @abstractmethod
    def exists(self, username: str, email: str) -> bool:
        """用户名或邮箱是否已被占用"""

    @abstractmethod
    def create_user(self, username: str, email: str, password_hash: str) -> User:
        pass


class SqlUserRepository(BaseRepository[User], UserRepository):

    def __init__(self, db: Session):
        BaseRepository.__init__(self, db, User)

    def get_by_id(self, user_id: str) -> Optional[User]:
        try:
            return BaseRepository.get_by_id(self, user_id)
        except SQLAlchemyError as e:
            logger.error(f"查询用户失败: {e}")
            raise StorageError("Failed to fetch user") from e

    def get_by_username(self, username: str) -> Optional[User]:
        try:
            return self.get_first_by(username=username)
        except SQLAlchemyError as e:
            logger.error(f"查询用户失败: {e}")
            raise StorageError("Failed to fetch user") from e

    def exists(self, username: str, email: str) -> bool:
        try:
            return self.db.query(User.id).filter(
                or_(User.username == username, User.email == email)
            ).first() is not None
        except SQLAlchemyError as e:
            logger.error(f"查询用户失败: {e}")
            raise StorageError("Failed to fetch user") from e

    def create_user(self, username: str, email: str, password_hash: str) -> User:
        try:
            return self.create(
                id=new_id(),
                username=username,
                email=email,
                password_hash=password_hash
            )
        except IntegrityError as e:
            # 并发注册时由唯一约束兜底
            self.db.rollback()
            raise ConflictError("Username or email already exists") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"创建用户失败: {e}")
            raise StorageError("Failed to create user") from e


class InMemoryUserRepository(UserRepository):

    def __init__(self):
        self._users: Dict[str, User] = {}
        self._lock = threading.Lock()

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            return next((u for u in self._users.values() if u.username == username), None)

    def exists(self, username: str, email: str) -> bool:
        with self._lock:
            return any(u.username == username or u.email == email for u in self._users.values())

    def create_user(self, username: str, email: str, password_hash: str) -> User:
        now = utc_now()
        user = User(
            id=new_id(),
            username=username,
            email=email,
            password_hash=password_hash,
            created_at=now,
            updated_at=now
        )
        with self._lock:
            if any(u.username == username or u.email == email for u in self._users.values()):
                raise ConflictError("Username or email already exists")
            self._users[user.id] = user
        return user
