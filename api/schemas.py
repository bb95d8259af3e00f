from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RenderOptionsModel(BaseModel):
    subtitle: str = "Catering Grid"
    sheet_name: str = "Meals"
    show_descriptions: bool = True
    timezone: str = "Europe/London"


class MealsPivotRequest(BaseModel):
    """Inbound payload; the core re-validates every list before building the grid."""

    model_config = ConfigDict(populate_by_name=True)

    event_name: str = Field(default="Event", alias="eventName")
    dates: List[Dict[str, Any]] = Field(default_factory=list)
    slots: List[Dict[str, Any]] = Field(default_factory=list)
    names: List[Dict[str, Any]] = Field(default_factory=list)
    tags: List[Dict[str, Any]] = Field(default_factory=list)
    data: List[Dict[str, Any]] = Field(default_factory=list)
    options: Optional[RenderOptionsModel] = None


class MealsPivotResponse(BaseModel):
    status: str
    xlsx: str
    html: str
    base_name: str
    grand_total: int


class DateSyncRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_id: str = Field(alias="eventId")
    start_date: str = Field(alias="startDate")
    end_date: str = Field(alias="endDate")
    existing: List[str] = Field(default_factory=list)
