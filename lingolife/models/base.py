# lingolife/models/base.py
import uuid
import pytz
from sqlalchemy.orm import declarative_base
from sqlalchemy import Column, String, DateTime
from datetime import datetime

Base = declarative_base()


def utc_now() -> datetime:
    return datetime.now(pytz.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class BaseModel(Base):
    __abstract__ = True

    # 对外暴露为不透明字符串ID
    id = Column(String(36), primary_key=True, index=True, default=new_id)
    created_at = Column(DateTime(timezone=True), default=utc_now, index=True)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


def isoformat(value: datetime):
    return value.isoformat() if value else None
