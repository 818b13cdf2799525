import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from lingolife.client.storage import MemoryKeyValueStore
from lingolife.config.settings import Settings
from lingolife.main import create_application
from lingolife.models.base import Base
from lingolife.repositories.memory_word_repository import InMemoryWordRepository
from lingolife.repositories.word_repository import SqlWordRepository
from lingolife.utils.database import create_db_engine

# 确保模型注册到元数据
import lingolife.models.word  # noqa: F401
import lingolife.models.user  # noqa: F401


@pytest.fixture
def sql_session():
    """SQLite内存库会话，每个测试独立建表"""
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def memory_repo():
    return InMemoryWordRepository(seed=False)


@pytest.fixture
def sql_repo(sql_session):
    return SqlWordRepository(sql_session)


@pytest.fixture(params=["memory", "sql"])
def word_repository(request):
    """两种后端跑同一套仓库测试"""
    if request.param == "memory":
        return InMemoryWordRepository(seed=False)
    return SqlWordRepository(request.getfixturevalue("sql_session"))


@pytest.fixture
def kv_store():
    return MemoryKeyValueStore()


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "DATABASE_URL": None,
        "LOG_DIR": str(tmp_path / "logs"),
        "JWT_SECRET": "test-secret",
        "YOUDAO_APP_KEY": None,
        "YOUDAO_APP_SECRET": None,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(params=["memory", "sql"])
def app(request, tmp_path):
    """创建测试应用，分别使用内存后端和SQLite后端"""
    database_url = None if request.param == "memory" else "sqlite://"
    application = create_application(make_settings(tmp_path, DATABASE_URL=database_url))
    yield application
    application.state.backend.dispose()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def memory_app(tmp_path):
    application = create_application(make_settings(tmp_path))
    yield application
    application.state.backend.dispose()


@pytest.fixture
def memory_client(memory_app):
    return TestClient(memory_app)


@pytest.fixture
def settings_factory(tmp_path):
    def _factory(**overrides) -> Settings:
        return make_settings(tmp_path, **overrides)
    return _factory
