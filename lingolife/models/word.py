from sqlalchemy import Column, String, Integer, DateTime, Text

from lingolife.models.base import BaseModel, isoformat

"""
单词模型
记录用户保存的单词，包括拼写、音标、中文释义、词性、英文解释，以及复习时"认识"/"不认识"的累计次数。
"""


class Word(BaseModel):
    __tablename__ = "words"

    user_id = Column(String(64), index=True, nullable=False)
    term = Column(String(200), nullable=False)
    phonetic = Column(String(200), default="")
    translation = Column(Text, nullable=False)
    part_of_speech = Column(String(50), default="")
    definition = Column(Text, default="")
    known_count = Column(Integer, default=0, nullable=False)
    unknown_count = Column(Integer, default=0, nullable=False)
    last_reviewed_at = Column(DateTime(timezone=True))
    # 插入序号，创建时间相同时用于稳定排序
    seq = Column(Integer, index=True, nullable=False, default=0)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "term": self.term,
            "phonetic": self.phonetic or "",
            "translation": self.translation,
            "part_of_speech": self.part_of_speech or "",
            "definition": self.definition or "",
            "known_count": self.known_count or 0,
            "unknown_count": self.unknown_count or 0,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
            "last_reviewed_at": isoformat(self.last_reviewed_at)
        }
