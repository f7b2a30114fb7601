from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ProfileRequest(BaseModel):
    latitude: float
    longitude: float
    address_hint: str = ""
    categories: Optional[List[str]] = None
    deadline: Optional[float] = Field(default=None, gt=0)


class FieldOut(BaseModel):
    value: Dict[str, Any]
    sources: List[str]
    confidence: int
    data_quality: str
    completeness: int
    last_updated: str


class SummaryOut(BaseModel):
    confidence: int
    data_quality: str
    completeness: int
    fallback_categories: List[str] = Field(default_factory=list)


class QueryOut(BaseModel):
    latitude: float
    longitude: float
    address_hint: str = ""


class ProfileResponse(BaseModel):
    query: QueryOut
    last_updated: str
    summary: SummaryOut
    categories: Dict[str, FieldOut]
