import logging
from typing import Any, Dict
from fastapi import APIRouter, Depends, status

from lingolife.api.dependencies import get_auth_service, get_current_user
from lingolife.api.schemas.auth_schemas import AuthResponse, LoginRequest, MeResponse, RegisterRequest
from lingolife.services.auth_service import AuthService

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    """
    用户注册，成功后直接返回登录令牌
    """
    user, token = service.register(data.username, data.email, data.password)
    return {"message": "User created successfully", "user": user, "token": token}

@router.post("/login", response_model=AuthResponse)
def login(data: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """
    用户登录
    """
    user, token = service.login(data.username, data.password)
    return {"message": "Login successful", "user": user, "token": token}

@router.get("/me", response_model=MeResponse)
def me(token_user: Dict[str, Any] = Depends(get_current_user)):
    """
    获取当前登录用户信息（来自令牌）
    """
    return {
        "user": {
            "id": token_user["userId"],
            "username": token_user.get("username", ""),
            "email": token_user.get("email", "")
        }
    }
