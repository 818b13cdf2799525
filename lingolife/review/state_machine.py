from enum import Enum
from typing import Any, Dict, Iterable, List, Optional
from dataclasses import dataclass, field
import logging

from lingolife.utils.helpers import round_half_up

logger = logging.getLogger(__name__)


class ReviewStep(Enum):
    """复习会话状态枚举"""
    LOADING = "loading"      # 正在加载复习队列
    EMPTY = "empty"          # 没有可复习的单词
    ACTIVE = "active"        # 复习进行中
    FINISHED = "finished"    # 复习完成


@dataclass
class ReviewCard:
    """复习卡片，正面为单词，背面为音标、释义和解释"""
    id: str
    term: str
    phonetic: str = ""
    translation: str = ""
    definition: str = ""

    @classmethod
    def from_word(cls, word: Any) -> "ReviewCard":
        """从ORM单词对象或接口返回的字典构造卡片"""
        data = word.to_dict() if hasattr(word, "to_dict") else dict(word)
        return cls(
            id=str(data["id"]),
            term=data.get("term") or "",
            phonetic=data.get("phonetic") or "",
            translation=data.get("translation") or "",
            definition=data.get("definition") or ""
        )


@dataclass
class ReviewState:
    """复习状态数据类"""
    step: ReviewStep = ReviewStep.LOADING
    queue: List[ReviewCard] = field(default_factory=list)   # 加载时确定，之后不变
    position: int = 0                                        # 当前卡片下标
    flipped: bool = False                                    # 是否已翻到背面
    known_count: int = 0                                     # 本次会话"认识"次数
    unknown_count: int = 0                                   # 本次会话"不认识"次数


class ReviewStateMachine:
    """
    复习会话状态机

    LOADING -> EMPTY | ACTIVE -> FINISHED

    每张卡片只计数一次："认识"或"不认识"会把卡片标记为已复习；
    "不认识"后卡片停在背面，再按"认识"只前进不再计数。
    """

    def __init__(self):
        self.state = ReviewState()
        logger.debug("复习状态机初始化完成")

    def get_current_step(self) -> ReviewStep:
        return self.state.step

    @property
    def current_card(self) -> Optional[ReviewCard]:
        if self.state.step != ReviewStep.ACTIVE:
            return None
        return self.state.queue[self.state.position]

    def load(self, candidates: Iterable[Any], reviewed_ids: Iterable[str]) -> ReviewStep:
        """
        根据候选单词和今日已复习ID计算复习队列

        Args:
            candidates: 仓库返回的候选单词，顺序即复习顺序
            reviewed_ids: 今日已复习的单词ID

        Returns:
            ReviewStep: EMPTY 或 ACTIVE
        """
        reviewed = {str(word_id) for word_id in reviewed_ids}
        queue = [
            card for card in (ReviewCard.from_word(w) for w in candidates)
            if card.id not in reviewed
        ]

        self.state = ReviewState(
            step=ReviewStep.ACTIVE if queue else ReviewStep.EMPTY,
            queue=queue
        )
        logger.info(f"复习队列加载完成: {len(queue)}个单词, 今日已复习{len(reviewed)}个")
        return self.state.step

    def know(self) -> Optional[ReviewCard]:
        """
        "认识"操作

        Returns:
            本次操作新完成复习的卡片；卡片已翻面（之前选过"不认识"）时返回None
        """
        if self.state.step != ReviewStep.ACTIVE:
            logger.warning(f"当前状态 {self.state.step.value} 不接受'认识'操作")
            return None

        resolved = None
        if not self.state.flipped:
            self.state.known_count += 1
            resolved = self.current_card

        self._advance()
        return resolved

    def dont_know(self) -> Optional[ReviewCard]:
        """
        "不认识"操作：翻到背面，不前进

        Returns:
            本次操作新完成复习的卡片；已经翻面时为None（不重复计数）
        """
        if self.state.step != ReviewStep.ACTIVE:
            logger.warning(f"当前状态 {self.state.step.value} 不接受'不认识'操作")
            return None

        if self.state.flipped:
            return None

        self.state.unknown_count += 1
        self.state.flipped = True
        return self.current_card

    def _advance(self):
        current = self.state.position
        if current >= len(self.state.queue) - 1:
            self.state.step = ReviewStep.FINISHED
        else:
            self.state.position += 1
            self.state.flipped = False
        logger.debug(f"卡片前进: {current} -> {self.state.position}, 状态: {self.state.step.value}")

    def progress(self) -> int:
        """完成百分比，按当前位置计算，比实际完成数落后一张"""
        total = len(self.state.queue)
        if total == 0:
            return 0
        return round_half_up(self.state.position / total * 100)

    def restart(self):
        """重新开始：保留队列，清空位置、翻面状态和计数"""
        if not self.state.queue:
            logger.warning("复习队列为空，无法重新开始")
            return
        self.state = ReviewState(step=ReviewStep.ACTIVE, queue=self.state.queue)
        logger.info("复习会话已重新开始")

    def is_finished(self) -> bool:
        return self.state.step == ReviewStep.FINISHED

    def summary(self) -> Dict[str, int]:
        """复习结果统计"""
        return {
            "known_count": self.state.known_count,
            "unknown_count": self.state.unknown_count,
            "total": len(self.state.queue)
        }

    def get_state_data(self) -> Dict[str, Any]:
        """获取状态数据"""
        card = self.current_card
        return {
            "step": self.state.step.value,
            "position": self.state.position,
            "total": len(self.state.queue),
            "flipped": self.state.flipped,
            "known_count": self.state.known_count,
            "unknown_count": self.state.unknown_count,
            "progress": self.progress(),
            "current_word_id": card.id if card else None
        }
