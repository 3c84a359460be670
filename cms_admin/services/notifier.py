from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class NoticeLevel(StrEnum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    message: str


class Notifier:
    """Collects user-facing acknowledgments until the page renders them."""

    def __init__(self) -> None:
        self._notices: list[Notice] = []

    @property
    def notices(self) -> list[Notice]:
        return list(self._notices)

    def notify(self, level: NoticeLevel, message: str) -> None:
        self._notices.append(Notice(level=level, message=message))

    def success(self, message: str) -> None:
        self.notify(NoticeLevel.SUCCESS, message)

    def error(self, message: str) -> None:
        self.notify(NoticeLevel.ERROR, message)

    def drain(self) -> list[Notice]:
        drained = self._notices
        self._notices = []
        return drained
