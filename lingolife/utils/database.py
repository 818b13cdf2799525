from typing import Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
import logging

from lingolife.config.settings import Settings, settings as default_settings
from lingolife.models.base import Base
from lingolife.repositories.memory_word_repository import InMemoryWordRepository
from lingolife.repositories.user_repository import (
    InMemoryUserRepository, SqlUserRepository, UserRepository
)
from lingolife.repositories.word_repository import SqlWordRepository, WordRepository

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str, debug: bool = False):
    """创建数据库引擎"""
    options = {
        "echo": debug,  # 在DEBUG模式下输出SQL语句
        "pool_pre_ping": True,
    }
    if database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # 内存库需要所有连接共享同一个数据库
            options["poolclass"] = StaticPool
    else:
        options["pool_recycle"] = 3600
    return create_engine(database_url, **options)


class SqlBackend:
    """关系数据库后端"""

    name = "sql"

    def __init__(self, engine, config: Settings = None):
        self.engine = engine
        self.config = config or default_settings
        # 创建SessionLocal类
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def init_db(self):
        """初始化数据库表，单词表为空时写入示例数据"""
        try:
            # 确保模型已注册到元数据
            from lingolife.models.word import Word  # noqa: F401
            from lingolife.models.user import User  # noqa: F401

            Base.metadata.create_all(bind=self.engine)
            logger.info("数据库表初始化完成")
        except Exception as e:
            logger.error(f"数据库初始化失败: {e}")
            raise

        if self.config.SEED_SAMPLE_WORDS:
            db = self.open_session()
            try:
                self.word_repository(db).seed_sample_words()
            finally:
                db.close()

    def open_session(self) -> Session:
        return self.SessionLocal()

    def word_repository(self, db: Session) -> WordRepository:
        return SqlWordRepository(db, self.config.REVIEW_BATCH_SIZE)

    def user_repository(self, db: Session) -> UserRepository:
        return SqlUserRepository(db)

    def check_connection(self) -> bool:
        """检查数据库连接是否正常"""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"数据库连接检查失败: {e}")
            return False

    def dispose(self):
        self.engine.dispose()


class MemoryBackend:
    """内存后端，进程内共享同一份单词和用户数据"""

    name = "memory"

    def __init__(self, config: Settings = None):
        self.config = config or default_settings
        self.words = InMemoryWordRepository(
            seed=self.config.SEED_SAMPLE_WORDS,
            review_batch_size=self.config.REVIEW_BATCH_SIZE
        )
        self.users = InMemoryUserRepository()

    def init_db(self):
        pass

    def open_session(self) -> Optional[Session]:
        return None

    def word_repository(self, db: Optional[Session] = None) -> WordRepository:
        return self.words

    def user_repository(self, db: Optional[Session] = None) -> UserRepository:
        return self.users

    def check_connection(self) -> bool:
        return True

    def dispose(self):
        pass


def select_backend(config: Settings = None):
    """
    选择存储后端，只在进程启动时调用一次
    配置了 DATABASE_URL 时使用关系数据库，否则退回内存存储
    """
    config = config or default_settings
    if config.DATABASE_URL:
        logger.info("检测到数据库配置，使用关系数据库存储")
        backend = SqlBackend(create_db_engine(config.DATABASE_URL, config.DEBUG), config)
    else:
        logger.warning("未配置 DATABASE_URL，使用内存存储，数据不会持久化")
        backend = MemoryBackend(config)
    backend.init_db()
    return backend


def get_db(request: Request):
    """获取数据库会话，内存后端时为None"""
    db = request.app.state.backend.open_session()
    if db is None:
        yield None
        return
    try:
        yield db
    except Exception as e:
        logger.warning(f"数据库会话中止: {e}")
        db.rollback()
        raise
    finally:
        db.close()
