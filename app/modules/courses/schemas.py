"""Courses schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import CourseStatusEnum


class CourseCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    number_of_classes: int = Field(default=0, ge=0)


class CourseRead(BaseModel):
    """Course response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    number_of_classes: int
    status: CourseStatusEnum
    created_at: datetime
    updated_at: datetime


class CourseBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
