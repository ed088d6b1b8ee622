"""Request and response models for the workout PDF API."""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from app import config

MAX_CLEANUP_DELAY_MS = int(config.CLEANUP_MAX_AGE_SECONDS * 1000)


def _strip_optional(value):
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class _Document(BaseModel):
    model_config = ConfigDict(frozen=True)


class Exercise(_Document):
    name: str
    sets: Optional[int] = None
    reps: Optional[int] = None
    duration: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("duration", "notes", mode="before")
    @classmethod
    def normalize_optional_string(cls, value):
        return _strip_optional(value)

    @field_validator("name", mode="before")
    @classmethod
    def normalize_required_string(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class DayPlan(_Document):
    day: str
    exercises: list[Exercise]

    @field_validator("day", mode="before")
    @classmethod
    def normalize_required_string(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class WorkoutMetadata(_Document):
    created_by: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("createdBy", "created_by"),
        serialization_alias="createdBy",
    )
    created_at: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("createdAt", "created_at"),
        serialization_alias="createdAt",
    )
    duration: Optional[str] = None
    difficulty: Optional[str] = None

    @field_validator("created_by", "created_at", "duration", "difficulty", mode="before")
    @classmethod
    def normalize_optional_string(cls, value):
        return _strip_optional(value)


class WorkoutDocument(_Document):
    title: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[WorkoutMetadata] = None
    schedule: Optional[list[DayPlan]] = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def normalize_optional_string(cls, value):
        return _strip_optional(value)


class GeneratePdfOptions(BaseModel):
    auto_cleanup: bool = Field(
        default=True,
        validation_alias=AliasChoices("autoCleanup", "auto_cleanup"),
    )
    cleanup_delay_ms: Optional[int] = Field(
        default=None,
        ge=0,
        le=MAX_CLEANUP_DELAY_MS,
        validation_alias=AliasChoices("cleanupDelayMs", "cleanup_delay_ms"),
    )


class GeneratePdfRequest(BaseModel):
    data: WorkoutDocument
    options: GeneratePdfOptions = Field(default_factory=GeneratePdfOptions)


class GeneratedPdfInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    filename: str
    download_url: str = Field(alias="downloadUrl")
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")


class GeneratePdfResponse(BaseModel):
    success: bool = True
    message: str = "PDF generated successfully"
    data: GeneratedPdfInfo


class CleanupDetails(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    files_scanned: int = Field(alias="filesScanned")
    files_cleaned: int = Field(alias="filesCleaned")
    errors: int


class CleanupResponse(BaseModel):
    success: bool = True
    message: str
    details: Optional[CleanupDetails] = None
