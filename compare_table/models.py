from __future__ import annotations

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class NormalizedRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    values: List[str]


class NormalizedTable(BaseModel):
    model_config = ConfigDict(frozen=True)

    columns: List[str] = Field(default_factory=list)
    rows: List[NormalizedRow] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.rows


class ReportSummary(BaseModel):
    rows: int = 0
    columns: int = 0
    subjects: int = 0
    warnings: int = 0


class ReportItem(BaseModel):
    row: Optional[int] = None
    column: Optional[int] = None
    issue: str
    value: Optional[str] = None
    action: str


class CompareReport(BaseModel):
    summary: ReportSummary
    warnings: List[ReportItem] = Field(default_factory=list)


class Highlight(BaseModel):
    item: Optional[str] = None
    summary: Optional[str] = None


class Link(BaseModel):
    url: str
    label: Optional[str] = None


class CompareResponse(BaseModel):
    table: NormalizedTable
    has_structured_table: bool
    fallback_text: Optional[str] = None
    message: Optional[str] = None
    items: List[str] = Field(default_factory=list)
    highlights: List[Highlight] = Field(default_factory=list)
    links: List[Link] = Field(default_factory=list)
    report: CompareReport


class NormalizeRequest(BaseModel):
    payload: Any = None
    query: str = ""


class PlacesResponse(BaseModel):
    items: List[Dict[str, Any]] = Field(default_factory=list)


class HealthResponse(BaseModel):
    ok: bool = True
