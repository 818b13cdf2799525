import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from sqlalchemy import desc, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lingolife.config.settings import settings
from lingolife.models.base import new_id, utc_now
from lingolife.models.word import Word
from lingolife.repositories.base import BaseRepository
from lingolife.utils.exceptions import NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)

# 两种存储后端共用的示例单词，归属默认用户
SAMPLE_WORDS = [
    {
        "term": "word",
        "phonetic": "/wɜːrd/",
        "translation": "词；话语；诺言",
        "part_of_speech": "noun",
        "definition": "A single distinct meaningful element of speech or writing, used with others to form a sentence."
    },
    {
        "term": "super",
        "phonetic": "/ˈsuːpər/",
        "translation": "超级的；极好的",
        "part_of_speech": "adjective",
        "definition": "Better, greater, or larger than average or standard."
    },
]


def normalize_user_id(user_id: Optional[str]) -> str:
    """
    规范化用户ID

    未提供用户ID或使用默认用户标识时，统一映射为固定的默认用户UUID，
    保证以默认用户写入的数据在读取和更新时都能找到。
    """
    if not user_id or user_id == settings.DEFAULT_USER_ID:
        return settings.DEFAULT_USER_UUID
    return str(user_id)


def build_word_fields(draft: Dict[str, Any]) -> Dict[str, str]:
    """校验新单词草稿并返回可入库的字段"""

    def _text(key: str, *aliases: str) -> str:
        for name in (key,) + aliases:
            value = draft.get(name)
            if value is None:
                continue
            if not isinstance(value, str):
                raise ValidationError(f"Field '{key}' must be a string")
            return value.strip()
        return ""

    term = _text("term")
    translation = _text("translation")
    if not term or not translation:
        raise ValidationError("Term and translation are required")

    return {
        "term": term,
        "translation": translation,
        "phonetic": _text("phonetic"),
        "part_of_speech": _text("part_of_speech", "partOfSpeech"),
        "definition": _text("definition"),
    }


class WordRepository(ABC):
    """
    单词仓库接口

    所有操作都以用户ID为参数，SQL后端和内存后端必须提供一致的行为和异常语义：
    - 参数错误抛出 ValidationError
    - 单词不存在抛出 NotFoundError
    - 存储不可用抛出 StorageError
    """

    backend_name = "abstract"

    def __init__(self, review_batch_size: int = None):
        self.review_batch_size = review_batch_size or settings.REVIEW_BATCH_SIZE

    @abstractmethod
    def list_words(self, user_id: Optional[str]) -> List[Word]:
        """获取用户全部单词，按创建时间倒序"""

    @abstractmethod
    def create_word(self, user_id: Optional[str], draft: Dict[str, Any]) -> Word:
        """保存新单词，认识/不认识次数从0开始"""

    @abstractmethod
    def record_outcome(self, user_id: Optional[str], word_id: str, known: bool) -> Word:
        """记录一次复习结果，对应计数加1并更新最后复习时间"""

    def fetch_review_candidates(self, user_id: Optional[str]) -> List[Word]:
        """获取复习候选单词（最多 review_batch_size 个，不按今日复习记录过滤）"""
        return self.list_words(user_id)[:self.review_batch_size]


class SqlWordRepository(BaseRepository[Word], WordRepository):
    """基于SQLAlchemy的单词仓库"""

    backend_name = "sql"

    def __init__(self, db: Session, review_batch_size: int = None):
        BaseRepository.__init__(self, db, Word)
        WordRepository.__init__(self, review_batch_size)

    @contextmanager
    def _guard(self, action: str):
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"数据库操作失败({action}): {e}")
            raise StorageError(f"Failed to {action}") from e

    def _next_seq(self):
        # 在INSERT语句内计算，与写入同一条语句
        return select(func.coalesce(func.max(Word.seq), 0) + 1).scalar_subquery()

    def _query_user_words(self, user_id: str):
        return self.db.query(Word).filter(
            Word.user_id == user_id
        ).order_by(desc(Word.created_at), desc(Word.seq))

    def list_words(self, user_id: Optional[str]) -> List[Word]:
        uid = normalize_user_id(user_id)
        with self._guard("fetch words"):
            return self._query_user_words(uid).all()

    def create_word(self, user_id: Optional[str], draft: Dict[str, Any]) -> Word:
        fields = build_word_fields(draft)
        uid = normalize_user_id(user_id)
        with self._guard("add word"):
            word = self.create(
                id=new_id(),
                user_id=uid,
                known_count=0,
                unknown_count=0,
                created_at=utc_now(),
                seq=self._next_seq(),
                **fields
            )
        logger.info(f"新单词保存成功: 用户{uid}, 单词: {word.term}")
        return word

    def record_outcome(self, user_id: Optional[str], word_id: str, known: bool) -> Word:
        uid = normalize_user_id(user_id)
        counter = Word.known_count if known else Word.unknown_count

        with self._guard("update word stats"):
            # 在数据库侧自增，避免读-改-写竞争
            result = self.db.execute(
                update(Word)
                .where(Word.id == word_id, Word.user_id == uid)
                .values({counter.key: counter + 1, "last_reviewed_at": utc_now()})
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                self.db.rollback()
                raise NotFoundError("Word not found")
            self.db.commit()

            word = self.get_by_id(word_id)
            self.db.refresh(word)

        logger.debug(f"复习结果已记录: 单词{word_id}, known={known}")
        return word

    def fetch_review_candidates(self, user_id: Optional[str]) -> List[Word]:
        uid = normalize_user_id(user_id)
        with self._guard("fetch words for review"):
            return self._query_user_words(uid).limit(self.review_batch_size).all()

    def count_words(self) -> int:
        with self._guard("count words"):
            return self.db.query(Word).count()

    def seed_sample_words(self) -> int:
        """单词表为空时写入示例单词"""
        if self.count_words() > 0:
            logger.info("单词表已有数据，跳过示例数据写入")
            return 0

        added = 0
        for sample in SAMPLE_WORDS:
            self.create_word(settings.DEFAULT_USER_ID, sample)
            added += 1
        logger.info(f"单词表为空，已写入{added}个示例单词")
        return added
