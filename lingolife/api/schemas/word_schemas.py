from pydantic import BaseModel, ConfigDict, StrictBool
from typing import Optional
from datetime import datetime

class WordCreate(BaseModel):
    userId: Optional[str] = None
    term: Optional[str] = None
    translation: Optional[str] = None
    phonetic: Optional[str] = None
    partOfSpeech: Optional[str] = None
    definition: Optional[str] = None

class WordOutcome(BaseModel):
    # 必须是 true/false，不接受 "yes"、1 之类的值
    known: Optional[StrictBool] = None
    userId: Optional[str] = None

class WordResponse(BaseModel):
    id: str
    user_id: str
    term: str
    phonetic: Optional[str] = ""
    translation: str
    part_of_speech: Optional[str] = ""
    definition: Optional[str] = ""
    known_count: int
    unknown_count: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_reviewed_at: Optional[datetime] = None

    model_config = ConfigDict(
        from_attributes=True
    )
