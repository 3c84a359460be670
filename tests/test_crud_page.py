from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import pytest

from cms_admin.adapters.fake_api import FakeCmsApi
from cms_admin.domain.models import CertificateRead, ServiceRead, TeamMemberRead
from cms_admin.domain.resources import CERTIFICATES, SERVICES, TEAM, ResourceSpec
from cms_admin.domain.session import SessionContext
from cms_admin.infra.api_client import CmsApiClient, build_http_client
from cms_admin.services.crud_page import (
    REQUIRED_NAMES_MESSAGE,
    CrudPage,
    RecordNotFoundError,
    UnsupportedOperationError,
    parse_leading_int,
)
from cms_admin.services.guarded_page import GuardedPage, PageState
from cms_admin.services.notifier import NoticeLevel
from cms_admin.services.session_guard import RecordingNavigator

ADMIN = SessionContext.for_user("admin")


def _certificate(name: str, expiry: str = "2030-01-01") -> dict[str, Any]:
    return {
        "name_en": name,
        "name_ar": f"{name}-ar",
        "name_ro": f"{name}-ro",
        "description_en": "",
        "description_ar": "",
        "description_ro": "",
        "image_url": "",
        "issued_date": "2024-01-01",
        "expiry_date": expiry,
    }


def _service_form(name: str = "Hosting", icon: str = "Cloud") -> dict[str, str]:
    return {
        "name_en": name,
        "name_ar": "استضافة",
        "name_ro": "Găzduire",
        "description_en": "Managed hosting",
        "icon": icon,
    }


def _run_page(
    api: FakeCmsApi,
    resource: ResourceSpec,
    action: Callable[[CrudPage], Awaitable[Any]] | None = None,
    *,
    session: SessionContext = ADMIN,
) -> tuple[CrudPage, Any]:
    async def _run() -> tuple[CrudPage, Any]:
        async with build_http_client(api.transport()) as http:
            page = CrudPage(resource, CmsApiClient(http))
            await page.mount(session, RecordingNavigator())
            result = await action(page) if action is not None else None
            return page, result

    return asyncio.run(_run())


def _requests(api: FakeCmsApi, method: str) -> list[str]:
    return [item.path for item in api.requests if item.method == method]


def test_load_populates_working_set_in_api_order() -> None:
    api = FakeCmsApi()
    api.add("certificates", _certificate("A"))
    api.add("certificates", _certificate("B"))

    page, _ = _run_page(api, CERTIFICATES)

    assert page.state == PageState.POPULATED
    assert [item.localized("name", "en") for item in page.items] == ["A", "B"]
    assert _requests(api, "GET") == ["/api/certificates"]


def test_load_failure_degrades_to_empty_and_logs(caplog: pytest.LogCaptureFixture) -> None:
    api = FakeCmsApi()
    api.add("services", {"name_en": "x", "name_ar": "x", "name_ro": "x"})
    api.fail_next("GET", "/api/services", status_code=500, error="db down")

    with caplog.at_level(logging.WARNING):
        page, _ = _run_page(api, SERVICES)

    assert page.items == []
    assert page.state == PageState.EMPTY
    assert page.notifier.notices == []
    assert "failed to load services" in caplog.text


def test_load_parse_and_transport_failures_degrade_to_empty() -> None:
    api = FakeCmsApi()
    api.add("team", {"name_en": "x", "name_ar": "x", "name_ro": "x"})
    api.fail_next("GET", "/api/team", status_code=200, raw_body=b"<html>oops</html>")
    page, _ = _run_page(api, TEAM)
    assert page.items == []

    api.disconnect_next("GET", "/api/team")
    page, _ = _run_page(api, TEAM)
    assert page.items == []
    assert page.loaded


def test_unauthenticated_mount_redirects_without_loading() -> None:
    api = FakeCmsApi()

    async def _run() -> tuple[CrudPage, RecordingNavigator]:
        async with build_http_client(api.transport()) as http:
            page = CrudPage(CERTIFICATES, CmsApiClient(http))
            navigator = RecordingNavigator()
            await page.mount(SessionContext.anonymous(), navigator)
            return page, navigator

    page, navigator = asyncio.run(_run())
    assert page.state == PageState.REDIRECT
    assert navigator.pushed == ["/admin/login"]
    assert api.requests == []


def test_loading_session_blocks_the_loader() -> None:
    api = FakeCmsApi()
    page, _ = _run_page(api, CERTIFICATES, session=SessionContext.loading())
    assert page.state == PageState.LOADING_AUTH
    assert api.requests == []


def test_collection_is_read_only_on_first_mount() -> None:
    api = FakeCmsApi()

    async def _remount(page: CrudPage) -> None:
        await page.mount(ADMIN, RecordingNavigator())

    _run_page(api, CERTIFICATES, _remount)
    assert _requests(api, "GET") == ["/api/certificates"]


def test_create_appends_server_record() -> None:
    api = FakeCmsApi()
    api.add("services", {"name_en": "Existing", "name_ar": "x", "name_ro": "x", "icon": "Zap"})

    async def _create(page: CrudPage) -> Any:
        page.open_new()
        return await page.create_record(_service_form())

    page, created = _run_page(api, SERVICES, _create)

    assert created is not None
    assert len(page.items) == 2
    assert page.items[-1].id == created.id
    assert page.items[-1].localized("name", "en") == "Hosting"
    assert page.form_open is False
    assert page.edit_target is None
    assert page.notifier.notices[-1].message == "Service added successfully!"
    assert api.requests[-1].body["icon"] == "Cloud"
    assert "id" not in api.requests[-1].body


def test_missing_name_aborts_without_request() -> None:
    api = FakeCmsApi()
    api.add("certificates", _certificate("X"))

    async def _submit(page: CrudPage) -> Any:
        page.open_new()
        return await page.submit({"name_en": "", "name_ar": "ش", "name_ro": "R"})

    page, result = _run_page(api, CERTIFICATES, _submit)

    assert result is None
    assert _requests(api, "POST") == []
    assert len(page.items) == 1
    assert page.form_open is True
    notice = page.notifier.notices[-1]
    assert notice.level == NoticeLevel.ERROR
    assert notice.message == REQUIRED_NAMES_MESSAGE


def test_update_replaces_record_in_place() -> None:
    api = FakeCmsApi()
    first = api.add("certificates", _certificate("First"))
    api.add("certificates", _certificate("Second"))

    async def _update(page: CrudPage) -> Any:
        page.open_existing(first["id"])
        form = _certificate("Renamed", expiry="2031-05-05")
        return await page.submit(form)

    page, updated = _run_page(api, CERTIFICATES, _update)

    assert updated is not None
    assert len(page.items) == 2
    assert page.items[0].id == first["id"]
    assert page.items[0].localized("name", "en") == "Renamed"
    assert page.items[0] == updated
    assert page.items[1].localized("name", "en") == "Second"
    put = [item for item in api.requests if item.method == "PUT"][-1]
    assert put.path == f"/api/certificates/{first['id']}"
    assert put.body["id"] == first["id"]
    assert page.notifier.notices[-1].message == "Certificate updated successfully!"


def test_create_service_server_error_surfaces_message() -> None:
    api = FakeCmsApi()
    api.add("services", {"name_en": "Existing", "name_ar": "x", "name_ro": "x"})
    api.fail_next("POST", "/api/services", status_code=500, error="db down")

    async def _create(page: CrudPage) -> Any:
        page.open_new()
        return await page.create_record(_service_form())

    page, created = _run_page(api, SERVICES, _create)

    assert created is None
    assert [item.localized("name", "en") for item in page.items] == ["Existing"]
    assert page.form_open is True
    assert "db down" in page.notifier.notices[-1].message
    assert page.notifier.notices[-1].level == NoticeLevel.ERROR


def test_error_without_message_uses_generic_fallback() -> None:
    api = FakeCmsApi()
    api.fail_next("POST", "/api/services", status_code=400, error=None)

    async def _create(page: CrudPage) -> Any:
        return await page.create_record(_service_form())

    page, _ = _run_page(api, SERVICES, _create)
    assert page.notifier.notices[-1].message == "Failed to save service: Unknown error"


def test_transport_and_parse_failures_on_save_leave_state_untouched() -> None:
    api = FakeCmsApi()
    api.disconnect_next("POST", "/api/services")

    async def _create(page: CrudPage) -> Any:
        page.open_new()
        return await page.create_record(_service_form())

    page, _ = _run_page(api, SERVICES, _create)
    assert page.items == []
    assert page.form_open is True
    assert page.notifier.notices[-1].message == "Error saving service. Please try again."

    api.fail_next("POST", "/api/services", status_code=201, raw_body=b"{broken")
    page, _ = _run_page(api, SERVICES, _create)
    assert page.items == []
    assert page.notifier.notices[-1].message == "Error saving service. Please try again."


def test_declined_delete_sends_nothing() -> None:
    api = FakeCmsApi()
    record = api.add("certificates", _certificate("Keep"))

    async def _delete(page: CrudPage) -> Any:
        before = [item.model_dump() for item in page.items]
        deleted = await page.delete(record["id"], lambda: False)
        return deleted, before

    page, (deleted, before) = _run_page(api, CERTIFICATES, _delete)

    assert deleted is False
    assert [item.model_dump() for item in page.items] == before
    assert _requests(api, "POST") == []


def test_confirmed_delete_removes_only_target() -> None:
    api = FakeCmsApi()
    keep = api.add("certificates", _certificate("Keep"))
    drop = api.add("certificates", _certificate("Drop"))

    async def _delete(page: CrudPage) -> Any:
        page.show_detail(drop["id"])
        return await page.delete(drop["id"], lambda: True)

    page, deleted = _run_page(api, CERTIFICATES, _delete)

    assert deleted is True
    assert [item.id for item in page.items] == [keep["id"]]
    assert page.detail_target is None
    assert api.requests[-1].path == "/api/delete-certificate/"
    assert api.requests[-1].body == {"id": drop["id"]}
    assert page.notifier.notices[-1].message == "Certificate deleted successfully!"


def test_failed_delete_keeps_working_set() -> None:
    api = FakeCmsApi()
    record = api.add("team", {"name_en": "A", "name_ar": "A", "name_ro": "A"})
    api.fail_next("POST", "/api/delete-team-member/", status_code=403, error="forbidden")

    async def _delete(page: CrudPage) -> Any:
        return await page.delete(record["id"], lambda: True)

    page, deleted = _run_page(api, TEAM, _delete)
    assert deleted is False
    assert [item.id for item in page.items] == [record["id"]]
    assert page.notifier.notices[-1].message == "Failed to delete team member: forbidden"


def test_team_members_cannot_be_updated() -> None:
    api = FakeCmsApi()
    record = api.add("team", {"name_en": "A", "name_ar": "A", "name_ro": "A"})

    async def _update(page: CrudPage) -> Any:
        with pytest.raises(UnsupportedOperationError):
            page.open_existing(record["id"])
        with pytest.raises(UnsupportedOperationError):
            await page.update_record(record["id"], {"name_en": "B"})

    _run_page(api, TEAM, _update)
    assert _requests(api, "PUT") == []


def test_opening_unknown_record_raises() -> None:
    api = FakeCmsApi()

    async def _open(page: CrudPage) -> Any:
        with pytest.raises(RecordNotFoundError):
            page.open_existing("missing")
        with pytest.raises(RecordNotFoundError):
            page.show_detail("missing")

    _run_page(api, SERVICES, _open)


def test_serialize_team_member_fields() -> None:
    api = FakeCmsApi()
    page, _ = _run_page(api, TEAM)

    payload = page.serialize({"name_en": "A", "experience_years": "12 years"})
    assert payload["experience_years"] == 12
    assert payload["email"] == ""
    assert payload["bio_ar"] == ""
    assert page.serialize({"experience_years": "abc"})["experience_years"] is None
    assert page.serialize({})["experience_years"] is None


def test_serialize_certificate_dates_as_null_when_empty() -> None:
    api = FakeCmsApi()
    page, _ = _run_page(api, CERTIFICATES)

    payload = page.serialize({"name_en": "A", "issued_date": "", "expiry_date": "2026-01-01"})
    assert payload["issued_date"] is None
    assert payload["expiry_date"] == "2026-01-01"
    assert payload["image_url"] == ""


def test_parse_leading_int() -> None:
    assert parse_leading_int(" 7") == 7
    assert parse_leading_int("-3x") == -3
    assert parse_leading_int("") is None
    assert parse_leading_int("x1") is None


def test_interleaved_creates_both_land_in_working_set() -> None:
    api = FakeCmsApi()

    async def _double_submit(page: CrudPage) -> Any:
        page.open_new()
        return await asyncio.gather(
            page.create_record(_service_form("One")),
            page.create_record(_service_form("Two")),
        )

    page, results = _run_page(api, SERVICES, _double_submit)
    assert all(item is not None for item in results)
    assert sorted(item.localized("name", "en") for item in page.items) == ["One", "Two"]
    assert len(_requests(api, "POST")) == 2


def test_numeric_identifiers_are_coerced_to_strings() -> None:
    assert ServiceRead.model_validate({"id": 7, "name_en": "x"}).id == "7"
    assert ServiceRead.model_validate({"id": 7}).icon == "Code"


def test_null_fields_from_api_fall_back_to_defaults() -> None:
    api = FakeCmsApi()
    api.add("services", {"name_en": "S", "name_ar": "s", "name_ro": "s", "icon": None, "description_en": None})
    nullable = _certificate("Nullable")
    nullable.update({"description_ro": None, "image_url": None, "expiry_date": None})
    api.add("certificates", nullable)
    api.add("certificates", _certificate("Complete"))

    services, _ = _run_page(api, SERVICES)
    certificates, _ = _run_page(api, CERTIFICATES)

    assert len(services.items) == 1
    assert services.items[0].icon == "Code"
    assert services.items[0].description_en == ""
    assert [item.localized("name", "en") for item in certificates.items] == ["Nullable", "Complete"]
    assert certificates.items[0].image_url == ""
    assert certificates.items[0].expiry_date is None


def test_null_fields_keep_nullable_values() -> None:
    member = TeamMemberRead.model_validate({"id": 3, "email": None, "experience_years": None})
    assert member.email == ""
    assert member.experience_years is None

    certificate = CertificateRead.model_validate({"id": "1", "name_en": None, "issued_date": None})
    assert certificate.localized("name", "en") == ""
    assert certificate.issued_date is None


def test_guarded_page_requires_a_loader() -> None:
    with pytest.raises(TypeError):
        GuardedPage(None)  # type: ignore[abstract,arg-type]
