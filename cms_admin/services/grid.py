from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from cms_admin.domain.expiry import EXPIRY_LABELS, classify_expiry, display_date
from cms_admin.domain.icons import icon_glyph, icon_slug, resolve_icon
from cms_admin.domain.models import (
    LANGUAGE_LABELS,
    LANGUAGES,
    CertificateRead,
    RecordReadModel,
    ServiceRead,
    TeamMemberRead,
)
from cms_admin.domain.resources import FieldKind, ResourceSpec


@dataclass(frozen=True)
class CardView:
    id: str
    title: str
    subtitle: str = ""
    image_url: str = ""
    badge: str | None = None
    badge_status: str | None = None
    icon_slug: str | None = None
    glyph: str | None = None
    meta: tuple[str, ...] = ()


@dataclass(frozen=True)
class DetailSection:
    language: str
    heading: str
    rtl: bool
    rows: tuple[tuple[str, str], ...]


@dataclass(frozen=True)
class DetailView:
    title: str
    image_url: str
    sections: tuple[DetailSection, ...]
    rows: tuple[tuple[str, str], ...] = field(default_factory=tuple)


def _certificate_card(record: CertificateRead, now: datetime | None) -> CardView:
    status = classify_expiry(record.expiry_date, now)
    return CardView(
        id=record.id,
        title=record.name_en,
        subtitle=record.description_en,
        image_url=record.image_url,
        badge=EXPIRY_LABELS[status],
        badge_status=status.value,
        meta=(display_date(record.expiry_date),),
    )


def _service_card(record: ServiceRead) -> CardView:
    return CardView(
        id=record.id,
        title=record.name_en,
        subtitle=record.description_en,
        image_url=record.image_url or "",
        icon_slug=icon_slug(record.icon),
        glyph=icon_glyph(record.icon),
        badge=resolve_icon(record.icon).value,
    )


def _team_card(record: TeamMemberRead) -> CardView:
    meta: list[str] = []
    if record.experience_years is not None:
        meta.append(f"{record.experience_years} years experience")
    if record.email:
        meta.append(record.email)
    if record.phone:
        meta.append(record.phone)
    return CardView(
        id=record.id,
        title=record.name_en,
        subtitle=record.position_en,
        image_url=record.image_url,
        meta=tuple(meta),
    )


def build_card(record: RecordReadModel, now: datetime | None = None) -> CardView:
    if isinstance(record, CertificateRead):
        return _certificate_card(record, now)
    if isinstance(record, ServiceRead):
        return _service_card(record)
    if isinstance(record, TeamMemberRead):
        return _team_card(record)
    return CardView(id=record.id, title=record.id)


def build_cards(records: list[RecordReadModel], now: datetime | None = None) -> list[CardView]:
    # evaluated per render so expiry badges follow the clock
    return [build_card(item, now) for item in records]


def _display_value(record: RecordReadModel, name: str, kind: FieldKind) -> str:
    value = getattr(record, name, None)
    if value is None:
        return ""
    if kind == FieldKind.DATE:
        return display_date(value)
    if kind == FieldKind.ICON:
        return resolve_icon(value).value
    return str(value)


def build_detail(resource: ResourceSpec, record: RecordReadModel) -> DetailView:
    sections: list[DetailSection] = []
    for language in LANGUAGES:
        rows = tuple(
            (item.label.split(" (")[0], _display_value(record, item.name, item.kind))
            for item in resource.fields
            if item.language == language
        )
        sections.append(
            DetailSection(
                language=language,
                heading=LANGUAGE_LABELS[language],
                rtl=language == "ar",
                rows=rows,
            )
        )
    shared_rows = tuple(
        (item.label, _display_value(record, item.name, item.kind))
        for item in resource.fields
        if item.language is None and item.kind != FieldKind.IMAGE
    )
    image_url = getattr(record, "image_url", "") or ""
    return DetailView(
        title=record.localized("name", "en") or record.id,
        image_url=image_url,
        sections=tuple(sections),
        rows=shared_rows,
    )
