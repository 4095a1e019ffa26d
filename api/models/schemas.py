"""
Pydantic schemas for API requests and responses.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Keyword Schemas

class KeywordCreate(BaseModel):
    """Schema for adding a keyword."""

    word: str = Field(..., description="Keyword or phrase")
    category: Optional[str] = Field(None, description="Optional label")
    is_phrase: Optional[bool] = Field(
        None,
        description="Phrase keywords must match on both word boundaries; single words match any word starting with them"
    )

    @field_validator('word')
    @classmethod
    def validate_word(cls, v):
        """Validate that the keyword is not blank."""
        if not v or not v.strip():
            raise ValueError("word must not be empty")
        return v


class KeywordBulkCreate(BaseModel):
    """Schema for adding many plain keywords."""

    words: List[str] = Field(..., description="Keywords to add")


class KeywordImport(BaseModel):
    """Schema for importing keywords from file content."""

    content: str = Field(..., description="File content, one 'word;category' entry per line")


class KeywordResponse(BaseModel):
    """Schema for keyword response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    word: str
    category: Optional[str] = None
    is_phrase: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class KeywordImportFailure(BaseModel):
    """A keyword that could not be imported."""

    word: str
    error: str


class KeywordImportStats(BaseModel):
    """Counters of a bulk import."""

    total: int
    success: int
    failed: int
    created: int
    updated: int


class KeywordBulkResponse(BaseModel):
    """Schema for bulk add / import response."""

    success: List[KeywordResponse]
    failed: List[KeywordImportFailure]
    stats: KeywordImportStats


class DeleteResponse(BaseModel):
    """Schema for delete response."""

    success: bool
    id: Optional[int] = None
    count: Optional[int] = None


class RecalculateResponse(BaseModel):
    """Schema for match recalculation response."""

    processed: int = Field(..., description="Comments visited")
    updated: int = Field(..., description="Comments and posts whose matches changed")
    created: int = Field(..., description="Match rows created")
    deleted: int = Field(..., description="Match rows deleted")
