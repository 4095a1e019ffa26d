"""
Keyword management and match recalculation endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Request, status

from core.config import get_config
from core.logger import get_logger
from modules.database.storage import MatchStorage
from modules.keywords.manager import KeywordManager
from api.middleware.auth import verify_api_key
from api.middleware.error_handler import NotFoundError
from api.middleware.rate_limit import limiter
from api.models.schemas import (
    DeleteResponse,
    KeywordBulkCreate,
    KeywordBulkResponse,
    KeywordCreate,
    KeywordImport,
    KeywordResponse,
    RecalculateResponse
)

router = APIRouter(tags=["keywords"])
logger = get_logger(__name__)
config = get_config()

_storage: Optional[MatchStorage] = None


def get_storage() -> MatchStorage:
    """Get or create the shared storage instance."""
    global _storage
    if _storage is None:
        _storage = MatchStorage()
    return _storage


def get_manager(storage: MatchStorage = Depends(get_storage)) -> KeywordManager:
    """Get keyword manager."""
    return KeywordManager(storage)


@router.get("", response_model=List[KeywordResponse])
def list_keywords(
    search: Optional[str] = None,
    api_key: str = Depends(verify_api_key),
    manager: KeywordManager = Depends(get_manager)
):
    """List keywords, optionally searching word and category."""
    return manager.get_keywords(search=search)


@router.post("", response_model=KeywordResponse, status_code=status.HTTP_201_CREATED)
def add_keyword(
    keyword: KeywordCreate,
    api_key: str = Depends(verify_api_key),
    manager: KeywordManager = Depends(get_manager)
):
    """Add a keyword (or update category/phrase flag of an existing one)."""
    return manager.add_keyword(keyword.word, category=keyword.category, is_phrase=keyword.is_phrase)


@router.post("/bulk", response_model=KeywordBulkResponse)
def bulk_add_keywords(
    payload: KeywordBulkCreate,
    api_key: str = Depends(verify_api_key),
    manager: KeywordManager = Depends(get_manager)
):
    """Add many keywords at once."""
    return manager.bulk_add_keywords(payload.words)


@router.post("/import", response_model=KeywordBulkResponse)
def import_keywords(
    payload: KeywordImport,
    api_key: str = Depends(verify_api_key),
    manager: KeywordManager = Depends(get_manager)
):
    """Import keywords from 'word;category' lines."""
    return manager.add_keywords_from_file(payload.content)


@router.post("/recalculate-matches", response_model=RecalculateResponse)
@limiter.limit(config.recalculate_rate_limit)
def recalculate_keyword_matches(
    request: Request,
    api_key: str = Depends(verify_api_key),
    manager: KeywordManager = Depends(get_manager)
):
    """Recompute keyword matches for every comment and post."""
    logger.info("Match recalculation requested")
    stats = manager.recalculate_keyword_matches()
    return stats.to_dict()


@router.delete("", response_model=DeleteResponse)
def delete_all_keywords(
    api_key: str = Depends(verify_api_key),
    manager: KeywordManager = Depends(get_manager)
):
    """Delete all keywords."""
    count = manager.delete_all_keywords()
    return DeleteResponse(success=True, count=count)


@router.delete("/{keyword_id}", response_model=DeleteResponse)
def delete_keyword(
    keyword_id: int,
    api_key: str = Depends(verify_api_key),
    manager: KeywordManager = Depends(get_manager)
):
    """Delete a keyword."""
    if not manager.delete_keyword(keyword_id):
        raise NotFoundError(f"Keyword {keyword_id} not found", details={"id": keyword_id})
    return DeleteResponse(success=True, id=keyword_id)
