from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from cms_admin.domain.models import (
    LANGUAGE_LABELS,
    LANGUAGES,
    CertificateRead,
    RecordReadModel,
    ServiceRead,
    TeamMemberRead,
)

STATS_PATH = "/api/admin/stats"
NAME_FIELDS: tuple[str, ...] = tuple(f"name_{language}" for language in LANGUAGES)


class FieldKind(StrEnum):
    TEXT = "text"
    TEXTAREA = "textarea"
    DATE = "date"
    INTEGER = "integer"
    EMAIL = "email"
    URL = "url"
    ICON = "icon"
    IMAGE = "image"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    label: str
    kind: FieldKind = FieldKind.TEXT
    language: str | None = None
    empty_as_null: bool = False

    @property
    def rtl(self) -> bool:
        return self.language == "ar"


@dataclass(frozen=True)
class ResourceSpec:
    key: str
    label: str
    plural_label: str
    record_model: type[RecordReadModel]
    fields: tuple[FieldSpec, ...]
    collection_path: str
    delete_path: str
    item_path: str | None = None
    description: str = ""
    required_fields: tuple[str, ...] = field(default=NAME_FIELDS)

    @property
    def supports_update(self) -> bool:
        return self.item_path is not None

    def item_url(self, record_id: str) -> str:
        if self.item_path is None:
            raise ValueError(f"{self.key} does not expose an item endpoint")
        return self.item_path.format(id=record_id)


def localized_fields(
    name: str,
    label: str,
    kind: FieldKind = FieldKind.TEXT,
) -> tuple[FieldSpec, ...]:
    return tuple(
        FieldSpec(
            name=f"{name}_{language}",
            label=f"{label} ({LANGUAGE_LABELS[language]})",
            kind=kind,
            language=language,
        )
        for language in LANGUAGES
    )


CERTIFICATES = ResourceSpec(
    key="certificates",
    label="Certificate",
    plural_label="Certificates",
    record_model=CertificateRead,
    fields=(
        *localized_fields("name", "Name"),
        *localized_fields("description", "Description", FieldKind.TEXTAREA),
        FieldSpec(name="issued_date", label="Issued Date", kind=FieldKind.DATE, empty_as_null=True),
        FieldSpec(name="expiry_date", label="Expiry Date", kind=FieldKind.DATE, empty_as_null=True),
        FieldSpec(name="image_url", label="Certificate Image", kind=FieldKind.IMAGE),
    ),
    collection_path="/api/certificates",
    item_path="/api/certificates/{id}",
    delete_path="/api/delete-certificate/",
    description="Update technology certifications and security standards",
)

SERVICES = ResourceSpec(
    key="services",
    label="Service",
    plural_label="Services",
    record_model=ServiceRead,
    fields=(
        *localized_fields("name", "Name"),
        *localized_fields("description", "Description", FieldKind.TEXTAREA),
        FieldSpec(name="icon", label="Icon", kind=FieldKind.ICON),
        FieldSpec(name="image_url", label="Service Image", kind=FieldKind.IMAGE),
    ),
    collection_path="/api/services",
    item_path="/api/services/{id}",
    delete_path="/api/delete-service/",
    description="Manage software development, cloud, AI, and cybersecurity services",
)

TEAM = ResourceSpec(
    key="team",
    label="Team member",
    plural_label="Team Members",
    record_model=TeamMemberRead,
    fields=(
        *localized_fields("name", "Name"),
        *localized_fields("position", "Position"),
        *localized_fields("bio", "Bio", FieldKind.TEXTAREA),
        FieldSpec(name="email", label="Email", kind=FieldKind.EMAIL),
        FieldSpec(name="phone", label="Phone", kind=FieldKind.TEXT),
        FieldSpec(name="experience_years", label="Years of Experience", kind=FieldKind.INTEGER),
        FieldSpec(name="linkedin_url", label="LinkedIn URL", kind=FieldKind.URL),
        FieldSpec(name="image_url", label="Profile Image", kind=FieldKind.IMAGE),
    ),
    collection_path="/api/team",
    delete_path="/api/delete-team-member/",
    description="Manage technology experts and development team profiles",
)

RESOURCES: dict[str, ResourceSpec] = {
    item.key: item for item in (SERVICES, CERTIFICATES, TEAM)
}


def get_resource(key: str) -> ResourceSpec | None:
    return RESOURCES.get(key)
