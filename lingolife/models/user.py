from sqlalchemy import Column, String
from .base import BaseModel

"""
用户模型
记录用户名、邮箱和密码哈希，用户名和邮箱均唯一。明文密码不落库。
"""
class User(BaseModel):
    __tablename__ = "users"

    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(200), unique=True, index=True, nullable=False)
    password_hash = Column(String(200), nullable=False)
