from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic import Field as PydanticField

LANGUAGES: tuple[str, ...] = ("en", "ar", "ro")
LANGUAGE_LABELS: dict[str, str] = {
    "en": "English",
    "ar": "Arabic",
    "ro": "Romanian",
}


class RecordReadModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    created_at: str | None = None
    updated_at: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _null_as_default(cls, data: Any) -> Any:
        # null on a field with a non-null default falls back to that default
        if not isinstance(data, dict):
            return data
        return {
            key: value
            for key, value in data.items()
            if value is not None or key not in cls.model_fields or cls.model_fields[key].default is None
        }

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    def localized(self, field: str, language: str) -> str:
        value = getattr(self, f"{field}_{language}", "")
        return value if isinstance(value, str) else ""


class CertificateRead(RecordReadModel):
    name_en: str = ""
    name_ar: str = ""
    name_ro: str = ""
    description_en: str = ""
    description_ar: str = ""
    description_ro: str = ""
    image_url: str = ""
    issued_date: str | None = None
    expiry_date: str | None = None


class ServiceRead(RecordReadModel):
    name_en: str = ""
    name_ar: str = ""
    name_ro: str = ""
    description_en: str = ""
    description_ar: str = ""
    description_ro: str = ""
    icon: str = "Code"
    image_url: str | None = None


class TeamMemberRead(RecordReadModel):
    name_en: str = ""
    name_ar: str = ""
    name_ro: str = ""
    position_en: str = ""
    position_ar: str = ""
    position_ro: str = ""
    bio_en: str = ""
    bio_ar: str = ""
    bio_ro: str = ""
    email: str = ""
    phone: str = ""
    image_url: str = ""
    linkedin_url: str = ""
    experience_years: int | None = None


class DashboardStatsRead(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    services: int = 0
    certificates: int = 0
    team_members: int = PydanticField(default=0, alias="teamMembers")
    messages: int = 0
    unread_messages: int = PydanticField(default=0, alias="unreadMessages")
    projects: int = 0
    clients: int = 0


class DeleteRequest(BaseModel):
    id: str
