from __future__ import annotations

from abc import ABC, abstractmethod
from enum import StrEnum

from cms_admin.domain.session import SessionContext
from cms_admin.infra.api_client import CmsApiClient
from cms_admin.services.session_guard import GuardDecision, Navigator, SessionGuard


class PageState(StrEnum):
    LOADING_AUTH = "loading_auth"
    REDIRECT = "redirect"
    LOADING_DATA = "loading_data"
    EMPTY = "empty"
    POPULATED = "populated"


class GuardedPage(ABC):
    """Session-guarded page that loads its data once, on first allowed mount."""

    def __init__(self, client: CmsApiClient) -> None:
        self._client = client
        self._guard = SessionGuard()
        self._decision: GuardDecision | None = None
        self._load_started = False
        self.loaded = False

    @property
    def has_data(self) -> bool:
        return True

    @property
    def state(self) -> PageState:
        if self._decision is None or self._decision == GuardDecision.LOADING:
            return PageState.LOADING_AUTH
        if self._decision == GuardDecision.REDIRECT:
            return PageState.REDIRECT
        if not self.loaded:
            return PageState.LOADING_DATA
        return PageState.POPULATED if self.has_data else PageState.EMPTY

    async def mount(self, session: SessionContext, navigator: Navigator) -> PageState:
        self._decision = self._guard.check(session, navigator)
        if self._decision != GuardDecision.ALLOW:
            return self.state
        if not self._load_started:
            self._load_started = True
            await self.load()
        return self.state

    @abstractmethod
    async def load(self) -> None:
        """Fetch the page data once; failures leave the page in its empty state."""
