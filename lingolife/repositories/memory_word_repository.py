import itertools
import logging
import threading
from typing import Any, Dict, List, Optional

from lingolife.models.base import new_id, utc_now
from lingolife.models.word import Word
from lingolife.repositories.word_repository import (
    SAMPLE_WORDS, WordRepository, build_word_fields, normalize_user_id
)
from lingolife.utils.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class InMemoryWordRepository(WordRepository):
    """
    内存单词仓库
    未配置数据库时使用，进程重启后数据丢失。以单词ID为键保存，启动时写入示例单词。
    """

    backend_name = "memory"

    def __init__(self, seed: bool = True, review_batch_size: int = None):
        super().__init__(review_batch_size)
        self._words: Dict[str, Word] = {}
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

        if seed:
            self._seed_sample_words()

    def _seed_sample_words(self):
        for index, sample in enumerate(SAMPLE_WORDS, start=1):
            self._insert(Word(
                id=str(index),
                user_id=normalize_user_id(None),
                known_count=0,
                unknown_count=0,
                created_at=utc_now(),
                updated_at=utc_now(),
                **build_word_fields(sample)
            ))
        logger.info(f"内存存储已写入{len(SAMPLE_WORDS)}个示例单词")

    def _insert(self, word: Word):
        self._words[word.id] = word
        word.seq = next(self._counter)

    def list_words(self, user_id: Optional[str]) -> List[Word]:
        uid = normalize_user_id(user_id)
        with self._lock:
            words = [w for w in self._words.values() if w.user_id == uid]
        return sorted(
            words,
            key=lambda w: (w.created_at, w.seq),
            reverse=True
        )

    def create_word(self, user_id: Optional[str], draft: Dict[str, Any]) -> Word:
        fields = build_word_fields(draft)
        now = utc_now()
        word = Word(
            id=new_id(),
            user_id=normalize_user_id(user_id),
            known_count=0,
            unknown_count=0,
            created_at=now,
            updated_at=now,
            **fields
        )
        with self._lock:
            self._insert(word)
        logger.info(f"新单词保存成功(内存): 用户{word.user_id}, 单词: {word.term}")
        return word

    def record_outcome(self, user_id: Optional[str], word_id: str, known: bool) -> Word:
        uid = normalize_user_id(user_id)
        with self._lock:
            word = self._words.get(word_id)
            if word is None or word.user_id != uid:
                raise NotFoundError("Word not found")

            if known:
                word.known_count += 1
            else:
                word.unknown_count += 1
            word.last_reviewed_at = utc_now()
            word.updated_at = word.last_reviewed_at

        logger.debug(f"复习结果已记录(内存): 单词{word_id}, known={known}")
        return word
