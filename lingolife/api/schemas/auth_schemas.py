from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

class RegisterRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None

class UserResponse(BaseModel):
    id: str
    username: str
    email: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(
        from_attributes=True
    )

class AuthResponse(BaseModel):
    message: str
    user: UserResponse
    token: str

class MeResponse(BaseModel):
    user: UserResponse
