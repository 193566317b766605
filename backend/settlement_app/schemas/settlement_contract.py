from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

# wire names, in form order
FORM_FIELD_NAMES: Tuple[str, ...] = (
    "email",
    "name",
    "advSetlDate",
    "area",
    "placeProg",
    "project",
    "prjCode",
    "coversheet",
    "dateProg",
    "progTitle",
    "summary",
    "food",
    "travel",
    "stationery",
    "printing",
    "accom",
    "communication",
    "resource",
    "other",
    "total",
    "inword",
    "vendor",
    "individual",
    "totalAdvTake",
    "receivable",
)

# fixed ledger row layout: timestamp, then the form fields
LEDGER_COLUMNS: Tuple[str, ...] = ("timestamp",) + FORM_FIELD_NAMES

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class SettlementFields(BaseModel):
    """Free-form settlement attributes, forwarded verbatim from the form."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    email: Optional[str] = None
    name: Optional[str] = None
    adv_setl_date: Optional[str] = Field(None, alias="advSetlDate")
    area: Optional[str] = None
    place_prog: Optional[str] = Field(None, alias="placeProg")
    project: Optional[str] = None
    prj_code: Optional[str] = Field(None, alias="prjCode")
    coversheet: Optional[str] = None
    date_prog: Optional[str] = Field(None, alias="dateProg")
    prog_title: Optional[str] = Field(None, alias="progTitle")
    summary: Optional[str] = None
    food: Optional[str] = None
    travel: Optional[str] = None
    stationery: Optional[str] = None
    printing: Optional[str] = None
    accom: Optional[str] = None
    communication: Optional[str] = None
    resource: Optional[str] = None
    other: Optional[str] = None
    total: Optional[str] = None
    inword: Optional[str] = None
    vendor: Optional[str] = None
    individual: Optional[str] = None
    total_adv_take: Optional[str] = Field(None, alias="totalAdvTake")
    receivable: Optional[str] = None

    @classmethod
    def from_form(cls, form: Dict[str, Any]) -> "SettlementFields":
        """Pick the known keys out of a parsed form; unknown keys are ignored."""
        values = {}
        for wire in FORM_FIELD_NAMES:
            value = form.get(wire)
            values[wire] = None if value is None else str(value)
        return cls.model_validate(values)

    def wire_values(self) -> Dict[str, Optional[str]]:
        return self.model_dump(by_alias=True)


class SettlementRecord(SettlementFields):
    id: str
    files: List[str] = Field(default_factory=list)
    created_at: str


@dataclass(frozen=True)
class Attachment:
    """In-memory upload; lives for one request only."""
    filename: str
    content_type: str
    content: bytes


class SettlementCreatedResponse(BaseModel):
    message: str
    data: Dict[str, Any]


class ErrorResponse(BaseModel):
    message: str
    error: str
