"""Knowledge base models."""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field, field_validator


class KBArticleCreate(BaseModel):
    """Payload for adding an article."""

    title: str = Field(min_length=3)
    body: str = Field(min_length=20)
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: List[str]) -> List[str]:
        seen: List[str] = []
        for tag in value:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen


class KBArticle(BaseModel):
    id: int
    title: str
    body: str
    tags: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class KBArticleSummary(BaseModel):
    """Search/list hit with a short excerpt instead of the full body."""

    id: int
    title: str
    excerpt: str
    tags: List[str] = Field(default_factory=list)
    updated_at: datetime
