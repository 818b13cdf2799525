import logging
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, Query, Request, status

from lingolife.api.dependencies import get_optional_user, get_word_repository, resolve_user_id
from lingolife.api.schemas.word_schemas import WordCreate, WordOutcome, WordResponse
from lingolife.repositories.word_repository import WordRepository
from lingolife.utils.exceptions import LingoLifeError, StorageError, ValidationError

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("", response_model=List[WordResponse])
def list_words(
    request: Request,
    userId: Optional[str] = Query(None, description="用户ID"),
    token_user: Optional[Dict[str, Any]] = Depends(get_optional_user),
    repo: WordRepository = Depends(get_word_repository)
):
    """
    获取用户的全部单词，按创建时间倒序
    """
    user_id = resolve_user_id(request, userId, token_user)
    try:
        return repo.list_words(user_id)
    except LingoLifeError:
        raise
    except Exception as e:
        logger.error(f"获取单词列表失败: {e}", exc_info=True)
        raise StorageError("Failed to fetch words") from e

@router.post("", response_model=WordResponse, status_code=status.HTTP_201_CREATED)
def create_word(
    request: Request,
    word_data: WordCreate,
    token_user: Optional[Dict[str, Any]] = Depends(get_optional_user),
    repo: WordRepository = Depends(get_word_repository)
):
    """
    保存新单词
    """
    user_id = resolve_user_id(request, word_data.userId, token_user)
    try:
        return repo.create_word(user_id, word_data.model_dump(exclude={"userId"}))
    except LingoLifeError:
        raise
    except Exception as e:
        logger.error(f"保存单词失败: {e}", exc_info=True)
        raise StorageError("Failed to add word") from e

@router.get("/review", response_model=List[WordResponse])
def get_review_words(
    request: Request,
    userId: Optional[str] = Query(None, description="用户ID"),
    token_user: Optional[Dict[str, Any]] = Depends(get_optional_user),
    repo: WordRepository = Depends(get_word_repository)
):
    """
    获取复习候选单词（最多10个），今日已复习的过滤由客户端完成
    """
    user_id = resolve_user_id(request, userId, token_user)
    try:
        return repo.fetch_review_candidates(user_id)
    except LingoLifeError:
        raise
    except Exception as e:
        logger.error(f"获取复习单词失败: {e}", exc_info=True)
        raise StorageError("Failed to fetch words for review") from e

@router.put("/{word_id}", response_model=WordResponse)
def record_review_outcome(
    request: Request,
    word_id: str,
    outcome: WordOutcome,
    token_user: Optional[Dict[str, Any]] = Depends(get_optional_user),
    repo: WordRepository = Depends(get_word_repository)
):
    """
    记录复习结果：认识或不认识次数加1
    """
    if outcome.known is None:
        raise ValidationError("Known status is required (true/false)")

    user_id = resolve_user_id(request, outcome.userId, token_user)
    try:
        return repo.record_outcome(user_id, word_id, outcome.known)
    except LingoLifeError:
        raise
    except Exception as e:
        logger.error(f"更新单词统计失败: {e}", exc_info=True)
        raise StorageError("Failed to update word stats") from e
