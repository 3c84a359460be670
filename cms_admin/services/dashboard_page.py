from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from pydantic import ValidationError

from cms_admin.domain.models import DashboardStatsRead
from cms_admin.domain.resources import RESOURCES, STATS_PATH
from cms_admin.infra.api_client import ApiError, CmsApiClient
from cms_admin.services.guarded_page import GuardedPage

logger = logging.getLogger(__name__)

SITE_URL = os.getenv("SITE_URL", "/")


@dataclass(frozen=True)
class StatCard:
    key: str
    label: str
    value: int


@dataclass(frozen=True)
class SectionLink:
    key: str
    label: str
    description: str
    href: str


class DashboardPage(GuardedPage):
    def __init__(self, client: CmsApiClient) -> None:
        super().__init__(client)
        self.stats = DashboardStatsRead()

    async def load(self) -> None:
        try:
            data = await self._client.get_json(STATS_PATH)
            self.stats = DashboardStatsRead.model_validate(data)
        except (ApiError, ValidationError) as exc:
            logger.warning("failed to load dashboard stats from %s: %s", STATS_PATH, exc)
        self.loaded = True

    def stat_cards(self) -> list[StatCard]:
        return [
            StatCard(key="services", label="Technology Services", value=self.stats.services),
            StatCard(key="certificates", label="Certifications", value=self.stats.certificates),
            StatCard(key="team", label="Team Experts", value=self.stats.team_members),
            StatCard(key="messages", label="Client Inquiries", value=self.stats.unread_messages),
        ]

    def sections(self) -> list[SectionLink]:
        links = [
            SectionLink(
                key=item.key,
                label=f"Manage {item.plural_label}",
                description=item.description,
                href=f"/admin/{item.key}",
            )
            for item in RESOURCES.values()
        ]
        links.append(
            SectionLink(
                key="website",
                label="View Website",
                description="Preview your technology website with current changes",
                href=SITE_URL,
            )
        )
        return links
