from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import ValidationError

from cms_admin.domain.models import DeleteRequest, RecordReadModel
from cms_admin.domain.resources import FieldKind, ResourceSpec
from cms_admin.infra.api_client import (
    ApiError,
    ApiMalformedResponseError,
    ApiResponseError,
    CmsApiClient,
)
from cms_admin.services.guarded_page import GuardedPage
from cms_admin.services.notifier import Notifier

logger = logging.getLogger(__name__)

REQUIRED_NAMES_MESSAGE = "Please fill in all name fields (English, Arabic, Romanian)"
UNKNOWN_ERROR = "Unknown error"

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class CrudPageError(Exception):
    pass


class UnsupportedOperationError(CrudPageError):
    pass


class RecordNotFoundError(CrudPageError):
    pass


def parse_leading_int(raw: str) -> int | None:
    match = _LEADING_INT.match(raw)
    if match is None:
        return None
    return int(match.group(1))


class CrudPage(GuardedPage):
    """Admin page mirroring one remote collection in a local working set.

    The working set is replaced on load, extended on create, patched on
    update and filtered on delete. Each mutation is applied to the working
    set as it stands when the response arrives.
    """

    def __init__(
        self,
        resource: ResourceSpec,
        client: CmsApiClient,
        notifier: Notifier | None = None,
    ) -> None:
        super().__init__(client)
        self.resource = resource
        self.notifier = notifier or Notifier()
        self.items: list[RecordReadModel] = []
        self.form_open = False
        self.edit_target: RecordReadModel | None = None
        self.detail_target: RecordReadModel | None = None

    @property
    def has_data(self) -> bool:
        return bool(self.items)

    @property
    def _noun(self) -> str:
        return self.resource.label.lower()

    def find(self, record_id: str) -> RecordReadModel | None:
        return next((item for item in self.items if item.id == record_id), None)

    def _require(self, record_id: str) -> RecordReadModel:
        record = self.find(record_id)
        if record is None:
            raise RecordNotFoundError(f"{self._noun} {record_id} not found")
        return record

    def _parse_record(self, data: Any) -> RecordReadModel:
        if not isinstance(data, dict):
            raise ApiMalformedResponseError(f"expected a {self._noun} object")
        try:
            return self.resource.record_model.model_validate(data)
        except ValidationError as exc:
            raise ApiMalformedResponseError(f"invalid {self._noun} payload") from exc

    def _parse_collection(self, data: Any) -> list[RecordReadModel]:
        if not isinstance(data, list):
            raise ApiMalformedResponseError(f"expected a list of {self.resource.plural_label.lower()}")
        return [self._parse_record(item) for item in data]

    async def load(self) -> None:
        path = self.resource.collection_path
        try:
            records = self._parse_collection(await self._client.get_json(path))
        except ApiError as exc:
            logger.warning("failed to load %s from %s: %s", self.resource.key, path, exc)
            records = []
        self.items = records
        self.loaded = True

    def open_new(self) -> None:
        self.form_open = True
        self.edit_target = None

    def open_existing(self, record_id: str) -> None:
        if not self.resource.supports_update:
            raise UnsupportedOperationError(f"{self.resource.key} cannot be edited")
        self.edit_target = self._require(record_id)
        self.form_open = True

    def close_form(self) -> None:
        self.form_open = False
        self.edit_target = None

    def show_detail(self, record_id: str) -> None:
        self.detail_target = self._require(record_id)

    def close_detail(self) -> None:
        self.detail_target = None

    def serialize(self, form_values: Mapping[str, Any]) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for field in self.resource.fields:
            raw = form_values.get(field.name)
            text = "" if raw is None else str(raw)
            if field.kind == FieldKind.INTEGER:
                payload[field.name] = parse_leading_int(text)
            elif field.empty_as_null and not text:
                payload[field.name] = None
            else:
                payload[field.name] = text
        return payload

    def missing_required(self, payload: Mapping[str, Any]) -> list[str]:
        return [name for name in self.resource.required_fields if not payload.get(name)]

    def _validated_payload(self, form_values: Mapping[str, Any]) -> dict[str, Any] | None:
        payload = self.serialize(form_values)
        if self.missing_required(payload):
            self.notifier.error(REQUIRED_NAMES_MESSAGE)
            return None
        return payload

    def _save_failed(self, exc: ApiError) -> None:
        logger.warning("failed to save %s: %s", self.resource.key, exc)
        if isinstance(exc, ApiResponseError):
            self.notifier.error(f"Failed to save {self._noun}: {exc.message or UNKNOWN_ERROR}")
        else:
            self.notifier.error(f"Error saving {self._noun}. Please try again.")

    async def create_record(self, form_values: Mapping[str, Any]) -> RecordReadModel | None:
        payload = self._validated_payload(form_values)
        if payload is None:
            return None
        try:
            data = await self._client.send_json("POST", self.resource.collection_path, payload)
            created = self._parse_record(data)
        except ApiError as exc:
            self._save_failed(exc)
            return None

        self.items = [*self.items, created]
        logger.info("created %s %s", self.resource.key, created.id)
        self.notifier.success(f"{self.resource.label} added successfully!")
        self.close_form()
        return created

    async def update_record(
        self,
        record_id: str,
        form_values: Mapping[str, Any],
    ) -> RecordReadModel | None:
        if not self.resource.supports_update:
            raise UnsupportedOperationError(f"{self.resource.key} cannot be updated")
        payload = self._validated_payload(form_values)
        if payload is None:
            return None
        payload["id"] = record_id
        try:
            data = await self._client.send_json("PUT", self.resource.item_url(record_id), payload)
            updated = self._parse_record(data)
        except ApiError as exc:
            self._save_failed(exc)
            return None

        self.items = [updated if item.id == record_id else item for item in self.items]
        if self.detail_target is not None and self.detail_target.id == record_id:
            self.detail_target = updated
        logger.info("updated %s %s", self.resource.key, record_id)
        self.notifier.success(f"{self.resource.label} updated successfully!")
        self.close_form()
        return updated

    async def submit(self, form_values: Mapping[str, Any]) -> RecordReadModel | None:
        if self.edit_target is not None:
            return await self.update_record(self.edit_target.id, form_values)
        return await self.create_record(form_values)

    async def delete(self, record_id: str, confirm: Callable[[], bool]) -> bool:
        if not confirm():
            return False
        try:
            await self._client.send_json("POST", self.resource.delete_path, DeleteRequest(id=record_id).model_dump())
        except ApiError as exc:
            logger.warning("failed to delete %s %s: %s", self.resource.key, record_id, exc)
            if isinstance(exc, ApiResponseError):
                self.notifier.error(f"Failed to delete {self._noun}: {exc.message or UNKNOWN_ERROR}")
            else:
                self.notifier.error(f"Error deleting {self._noun}. Please try again.")
            return False

        self.items = [item for item in self.items if item.id != record_id]
        if self.detail_target is not None and self.detail_target.id == record_id:
            self.close_detail()
        if self.edit_target is not None and self.edit_target.id == record_id:
            self.close_form()
        logger.info("deleted %s %s", self.resource.key, record_id)
        self.notifier.success(f"{self.resource.label} deleted successfully!")
        return True
