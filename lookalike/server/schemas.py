"""Pydantic schemas for API requests and responses."""
from typing import Optional
from pydantic import BaseModel


class SearchRequest(BaseModel):
    """Body of POST /api/search."""
    img: Optional[str] = None  # "<data-url prefix>,<base64 image>"


class SearchResponse(BaseModel):
    """Successful search result."""
    description: str
    images: list[str]


class HealthResponse(BaseModel):
    status: str
