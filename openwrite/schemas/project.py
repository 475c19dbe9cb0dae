"""Request bodies for projects, works and chapters."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from openwrite.schemas.base import CamelModel, json_text, not_null, require_text
from openwrite.schemas.enums import ProjectStatus, ProjectType, Visibility, WorkType


class ProjectCreate(CamelModel):
    title: str = Field(..., max_length=300)
    description: Optional[str] = None
    type: ProjectType = ProjectType.NOVEL
    genre: Optional[str] = None
    target_word_count: Optional[int] = Field(None, ge=0)
    status: ProjectStatus = ProjectStatus.DRAFT
    visibility: Visibility = Visibility.PRIVATE
    cover_image: Optional[str] = None
    metadata: Optional[str] = None

    check_title = field_validator("title")(require_text)
    check_metadata = field_validator("metadata")(json_text)


class ProjectUpdate(CamelModel):
    title: Optional[str] = Field(None, max_length=300)
    description: Optional[str] = None
    type: Optional[ProjectType] = None
    genre: Optional[str] = None
    target_word_count: Optional[int] = Field(None, ge=0)
    status: Optional[ProjectStatus] = None
    visibility: Optional[Visibility] = None
    cover_image: Optional[str] = None
    metadata: Optional[str] = None
    published_at: Optional[datetime] = None

    check_title = field_validator("title")(require_text)
    check_required = field_validator("type", "status", "visibility")(not_null)
    check_metadata = field_validator("metadata")(json_text)


class WorkCreate(CamelModel):
    title: str = Field(..., max_length=300)
    description: Optional[str] = None
    work_type: WorkType
    order: int = 1
    target_word_count: Optional[int] = Field(None, ge=0)
    status: ProjectStatus = ProjectStatus.DRAFT
    cover_image: Optional[str] = None
    metadata: Optional[str] = None

    check_title = field_validator("title")(require_text)
    check_metadata = field_validator("metadata")(json_text)


class WorkUpdate(CamelModel):
    title: Optional[str] = Field(None, max_length=300)
    description: Optional[str] = None
    work_type: Optional[WorkType] = None
    order: Optional[int] = None
    target_word_count: Optional[int] = Field(None, ge=0)
    status: Optional[ProjectStatus] = None
    cover_image: Optional[str] = None
    metadata: Optional[str] = None
    published_at: Optional[datetime] = None

    check_title = field_validator("title")(require_text)
    check_required = field_validator("work_type", "order", "status")(not_null)
    check_metadata = field_validator("metadata")(json_text)


class ChapterCreate(CamelModel):
    title: str = Field(..., max_length=300)
    content: Optional[str] = None
    summary: Optional[str] = None
    order: int
    status: ProjectStatus = ProjectStatus.DRAFT
    notes: Optional[str] = None

    check_title = field_validator("title")(require_text)


class ChapterUpdate(CamelModel):
    title: Optional[str] = Field(None, max_length=300)
    content: Optional[str] = None
    summary: Optional[str] = None
    order: Optional[int] = None
    status: Optional[ProjectStatus] = None
    notes: Optional[str] = None

    check_title = field_validator("title")(require_text)
    check_required = field_validator("order", "status")(not_null)
