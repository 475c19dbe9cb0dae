"""Request bodies for codex entries: characters, locations, lore and plot points."""

from typing import Optional

from pydantic import Field, field_validator

from openwrite.schemas.base import CamelModel, json_text, not_null, require_text
from openwrite.schemas.enums import LoreType, PlotPointStatus, PlotPointType


class CodexScoped(CamelModel):
    # Scope to one work of the project instead of the whole project
    work_id: Optional[str] = None


class CharacterCreate(CodexScoped):
    name: str = Field(..., max_length=200)
    description: Optional[str] = None
    image: Optional[str] = None
    metadata: Optional[str] = None

    check_name = field_validator("name")(require_text)
    check_metadata = field_validator("metadata")(json_text)


class CharacterUpdate(CodexScoped):
    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    image: Optional[str] = None
    metadata: Optional[str] = None

    check_name = field_validator("name")(require_text)
    check_metadata = field_validator("metadata")(json_text)


class LocationCreate(CodexScoped):
    name: str = Field(..., max_length=200)
    description: Optional[str] = None
    parent_location_id: Optional[str] = None
    image: Optional[str] = None
    metadata: Optional[str] = None

    check_name = field_validator("name")(require_text)
    check_metadata = field_validator("metadata")(json_text)


class LocationUpdate(CodexScoped):
    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    parent_location_id: Optional[str] = None
    image: Optional[str] = None
    metadata: Optional[str] = None

    check_name = field_validator("name")(require_text)
    check_metadata = field_validator("metadata")(json_text)


class LoreCreate(CodexScoped):
    name: str = Field(..., max_length=200)
    description: Optional[str] = None
    type: Optional[LoreType] = None
    metadata: Optional[str] = None

    check_name = field_validator("name")(require_text)
    check_metadata = field_validator("metadata")(json_text)


class LoreUpdate(CodexScoped):
    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    type: Optional[LoreType] = None
    metadata: Optional[str] = None

    check_name = field_validator("name")(require_text)
    check_metadata = field_validator("metadata")(json_text)


class PlotPointCreate(CodexScoped):
    title: str = Field(..., max_length=300)
    description: Optional[str] = None
    type: Optional[PlotPointType] = None
    order: int
    chapter_id: Optional[str] = None
    status: PlotPointStatus = PlotPointStatus.PLANNED

    check_title = field_validator("title")(require_text)


class PlotPointUpdate(CodexScoped):
    title: Optional[str] = Field(None, max_length=300)
    description: Optional[str] = None
    type: Optional[PlotPointType] = None
    order: Optional[int] = None
    chapter_id: Optional[str] = None
    status: Optional[PlotPointStatus] = None

    check_title = field_validator("title")(require_text)
    check_required = field_validator("order", "status")(not_null)
