import uuid
from pydantic import Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime

from schemas.base import CamelModel


class GeneratedBlog(CamelModel):
    """One story as returned by the language model (snake_case keys)."""
    title: str = Field(min_length=1)
    summary: Optional[str] = None
    content: str = Field(min_length=1)
    published_at: Optional[datetime] = None
    source_name: Optional[str] = None
    source_url: Optional[str] = None
    tags: List[str] = []
    region: List[str] = []
    companies: List[str] = []
    sector: Optional[str] = None
    financial_impact: Optional[str] = None
    key_numbers: Dict[str, Any] = {}
    image_prompt: Optional[str] = None

    @field_validator("tags", "region", "companies", mode="before")
    @classmethod
    def listify(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("key_numbers", mode="before")
    @classmethod
    def dictify(cls, v):
        return v if isinstance(v, dict) else {}

    @field_validator("published_at", mode="before")
    @classmethod
    def lenient_date(cls, v):
        # the model sometimes answers with prose like "today"
        if isinstance(v, str):
            try:
                return datetime.fromisoformat(v.replace("Z", "+00:00"))
            except ValueError:
                return None
        return v


class BlogResponse(CamelModel):
    id: uuid.UUID
    title: str
    summary: Optional[str] = None
    content: str
    published_at: datetime
    source_name: Optional[str] = None
    source_url: Optional[str] = None
    tags: List[str] = []
    region: List[str] = []
    companies: List[str] = []
    sector: Optional[str] = None
    financial_impact: Optional[str] = None
    key_numbers: Dict[str, Any] = {}
    image_url: Optional[str] = None
    image_source: Optional[str] = None
    image_attribution: Optional[str] = None
    image_license: Optional[str] = None
    image_alt_text: Optional[str] = None
    views: int = 0
    created_at: datetime


class GenerationResult(CamelModel):
    generated: int
    saved: int
    failed: int
