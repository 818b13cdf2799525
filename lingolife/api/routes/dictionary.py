import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query

from lingolife.api.dependencies import get_dictionary_service
from lingolife.api.schemas.dictionary_schemas import DictionaryResult
from lingolife.services.dictionary_service import DictionaryService
from lingolife.utils.exceptions import LingoLifeError, UpstreamError, ValidationError

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/{source}", response_model=DictionaryResult)
def lookup_word(
    source: str,
    q: Optional[str] = Query(None, description="查询词"),
    service: DictionaryService = Depends(get_dictionary_service)
):
    """
    词典查询代理，source 为词典来源名（目前只有 youdao）
    """
    if not q or not q.strip():
        raise ValidationError('Query parameter "q" is required')

    logger.info(f"词典查询: {q} (来源: {source})")
    try:
        return service.lookup(q)
    except LingoLifeError:
        raise
    except Exception as e:
        logger.error(f"词典查询失败: {e}", exc_info=True)
        raise UpstreamError("Failed to fetch from Youdao API") from e
