#!/usr/bin/env python3
"""
复习会话
把复习状态机、单词仓库和每日复习记录串起来：
- 加载时从仓库取候选单词，过滤掉今日已复习的
- 每张卡片完成复习时写入今日复习记录，并在后台把结果写回仓库
后台写入失败只记录日志，不影响会话继续进行。
"""

import asyncio
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional, Set

from lingolife.repositories.word_repository import WordRepository
from lingolife.review.state_machine import ReviewCard, ReviewStateMachine, ReviewStep
from lingolife.review.tracker import ReviewedWordsTracker

logger = logging.getLogger(__name__)


class ReviewSession:
    """单个用户的一次复习会话"""

    def __init__(self, user_id: Optional[str], repository: WordRepository,
                 tracker: ReviewedWordsTracker):
        self.user_id = user_id
        self.repository = repository
        self.tracker = tracker
        self.machine = ReviewStateMachine()
        self.failed_updates = 0

        # 单线程执行仓库调用，保证同一会话的写入按顺序进行
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="review-sync")
        # 本地复习记录单独一个线程，不排在仓库写入之后
        self._store_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="review-store")
        self._pending: Set[asyncio.Task] = set()

    async def __aenter__(self) -> "ReviewSession":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.wait_for_pending()
        await self.close()

    @property
    def step(self) -> ReviewStep:
        return self.machine.get_current_step()

    @property
    def current_card(self) -> Optional[ReviewCard]:
        return self.machine.current_card

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def _run(self, func, *args, executor: ThreadPoolExecutor = None):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(executor or self._executor, functools.partial(func, *args))

    async def load(self) -> ReviewStep:
        """加载复习队列，返回 EMPTY 或 ACTIVE"""
        candidates = await self._run(self.repository.fetch_review_candidates, self.user_id)
        reviewed = await self._run(self.tracker.reviewed_today, executor=self._store_executor)
        return self.machine.load(candidates, reviewed)

    async def know(self) -> ReviewStep:
        """"认识"：计数并进入下一张卡片"""
        card = self.machine.know()
        if card is not None:
            await self._resolve(card, known=True)
        return self.step

    async def dont_know(self) -> ReviewStep:
        """"不认识"：计数并翻到背面，停留在当前卡片"""
        card = self.machine.dont_know()
        if card is not None:
            await self._resolve(card, known=False)
        return self.step

    def restart(self):
        self.machine.restart()

    def progress(self) -> int:
        return self.machine.progress()

    def summary(self) -> Dict[str, int]:
        return self.machine.summary()

    def get_state_data(self) -> Dict[str, Any]:
        return self.machine.get_state_data()

    async def _resolve(self, card: ReviewCard, known: bool):
        await self._run(self.tracker.mark_reviewed, card.id, executor=self._store_executor)

        task = asyncio.get_running_loop().create_task(self._persist(card.id, known))
        self._pending.add(task)
        task.add_done_callback(self._on_persist_done)

    async def _persist(self, word_id: str, known: bool):
        return await self._run(self.repository.record_outcome, self.user_id, word_id, known)

    def _on_persist_done(self, task: asyncio.Task):
        self._pending.discard(task)
        if task.cancelled():
            logger.info("复习结果写入已取消")
            return

        error = task.exception()
        if error is not None:
            self.failed_updates += 1
            logger.error(f"复习结果写入失败: {error}", exc_info=error)

    async def wait_for_pending(self):
        """等待所有后台写入完成，写入失败不会抛出"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self):
        """取消未完成的后台写入并释放线程"""
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._executor.shutdown(wait=False)
        self._store_executor.shutdown(wait=False)
