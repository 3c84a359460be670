from __future__ import annotations

from enum import StrEnum
from typing import Protocol

from cms_admin.domain.session import SessionContext

LOGIN_PATH = "/admin/login"


class GuardDecision(StrEnum):
    LOADING = "loading"
    REDIRECT = "redirect"
    ALLOW = "allow"


class Navigator(Protocol):
    def push(self, path: str) -> None: ...


class RecordingNavigator:
    def __init__(self) -> None:
        self.pushed: list[str] = []

    def push(self, path: str) -> None:
        self.pushed.append(path)

    @property
    def target(self) -> str | None:
        return self.pushed[-1] if self.pushed else None


class SessionGuard:
    def __init__(self, login_path: str = LOGIN_PATH) -> None:
        self._login_path = login_path
        self._redirected_for: SessionContext | None = None

    def check(self, session: SessionContext, navigator: Navigator) -> GuardDecision:
        if session.is_loading:
            return GuardDecision.LOADING
        if not session.is_authenticated:
            # one navigation per resolved state
            if self._redirected_for != session:
                navigator.push(self._login_path)
                self._redirected_for = session
            return GuardDecision.REDIRECT
        self._redirected_for = None
        return GuardDecision.ALLOW
