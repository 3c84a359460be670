from __future__ import annotations

from enum import StrEnum


class ServiceIcon(StrEnum):
    CODE = "Code"
    CLOUD = "Cloud"
    SHIELD = "Shield"
    BRAIN = "Brain"
    DATABASE = "Database"
    SMARTPHONE = "Smartphone"
    SERVER = "Server"
    CPU = "Cpu"
    ZAP = "Zap"
    LOCK = "Lock"
    USERS = "Users"
    GLOBE = "Globe"


DEFAULT_ICON = ServiceIcon.CODE

# (lucide slug, text glyph)
ICON_RENDERERS: dict[ServiceIcon, tuple[str, str]] = {
    ServiceIcon.CODE: ("code", "⌨"),
    ServiceIcon.CLOUD: ("cloud", "☁"),
    ServiceIcon.SHIELD: ("shield", "⛨"),
    ServiceIcon.BRAIN: ("brain", "✵"),
    ServiceIcon.DATABASE: ("database", "⛁"),
    ServiceIcon.SMARTPHONE: ("smartphone", "☎"),
    ServiceIcon.SERVER: ("server", "☰"),
    ServiceIcon.CPU: ("cpu", "⚙"),
    ServiceIcon.ZAP: ("zap", "⚡"),
    ServiceIcon.LOCK: ("lock", "⚿"),
    ServiceIcon.USERS: ("users", "☺"),
    ServiceIcon.GLOBE: ("globe", "◍"),
}


def resolve_icon(name: str | None) -> ServiceIcon:
    if not isinstance(name, str):
        return DEFAULT_ICON
    try:
        return ServiceIcon(name)
    except ValueError:
        return DEFAULT_ICON


def icon_slug(name: str | None) -> str:
    return ICON_RENDERERS[resolve_icon(name)][0]


def icon_glyph(name: str | None) -> str:
    return ICON_RENDERERS[resolve_icon(name)][1]


def icon_choices() -> list[str]:
    return [item.value for item in ServiceIcon]
