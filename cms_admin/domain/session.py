from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AdminUser:
    username: str


@dataclass(frozen=True)
class SessionContext:
    is_authenticated: bool
    is_loading: bool = False
    current_user: AdminUser | None = None

    @classmethod
    def anonymous(cls) -> SessionContext:
        return cls(is_authenticated=False)

    @classmethod
    def loading(cls) -> SessionContext:
        return cls(is_authenticated=False, is_loading=True)

    @classmethod
    def for_user(cls, username: str) -> SessionContext:
        return cls(is_authenticated=True, current_user=AdminUser(username=username))
