from __future__ import annotations

import secrets
from pathlib import Path
from typing import Annotated, Any
from urllib.parse import quote, urlparse

import jwt
from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from cms_admin.api.deps import SESSION_COOKIE_NAME, get_session_context
from cms_admin.domain.icons import icon_choices
from cms_admin.domain.resources import RESOURCES, ResourceSpec, get_resource
from cms_admin.domain.session import SessionContext
from cms_admin.infra.api_client import CmsApiClient, get_api_client
from cms_admin.infra.auth import (
    FLASH_EXPIRES_MIN,
    SESSION_EXPIRES_MIN,
    create_flash_token,
    create_session_token,
    decode_flash_token,
    verify_admin_credentials,
)
from cms_admin.services.crud_page import CrudPage, RecordNotFoundError, UnsupportedOperationError
from cms_admin.services.dashboard_page import DashboardPage
from cms_admin.services.grid import build_cards, build_detail
from cms_admin.services.guarded_page import GuardedPage, PageState
from cms_admin.services.notifier import NoticeLevel
from cms_admin.services.session_guard import RecordingNavigator

router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parents[2] / "web" / "templates"))

CSRF_COOKIE_NAME = "cms_admin_csrf"
FLASH_COOKIE_NAME = "cms_admin_flash"
SESSION_MAX_AGE_SECONDS = 60 * SESSION_EXPIRES_MIN
DEFAULT_NEXT_PATH = "/admin/dashboard"
LOGIN_PATH = "/admin/login"

ApiClient = Annotated[CmsApiClient, Depends(get_api_client)]
Session = Annotated[SessionContext, Depends(get_session_context)]


def _sanitize_next_path(next_path: str | None) -> str:
    if not next_path:
        return DEFAULT_NEXT_PATH
    parsed = urlparse(next_path)
    if parsed.scheme or parsed.netloc:
        return DEFAULT_NEXT_PATH
    if not parsed.path.startswith("/admin") or parsed.path.startswith(LOGIN_PATH):
        return DEFAULT_NEXT_PATH
    sanitized = parsed.path
    if parsed.query:
        sanitized = f"{sanitized}?{parsed.query}"
    return sanitized


def _new_csrf_token() -> str:
    return secrets.token_urlsafe(24)


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        max_age=SESSION_MAX_AGE_SECONDS,
        path="/",
    )


def _clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=SESSION_COOKIE_NAME, path="/")


def _set_csrf_cookie(response: Response, csrf_token: str) -> None:
    response.set_cookie(
        key=CSRF_COOKIE_NAME,
        value=csrf_token,
        httponly=False,
        samesite="strict",
        max_age=SESSION_MAX_AGE_SECONDS,
        path="/",
    )


def _verify_csrf(request: Request, csrf_token: str | None) -> None:
    csrf_cookie = request.cookies.get(CSRF_COOKIE_NAME)
    if not csrf_cookie or not csrf_token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid csrf token")
    if not secrets.compare_digest(csrf_cookie, csrf_token):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid csrf token")


def _set_flash_cookie(response: Response, page: CrudPage) -> None:
    notices = [(notice.level.value, notice.message) for notice in page.notifier.drain()]
    if not notices:
        return
    response.set_cookie(
        key=FLASH_COOKIE_NAME,
        value=create_flash_token(notices),
        httponly=True,
        samesite="lax",
        max_age=60 * FLASH_EXPIRES_MIN,
        path="/",
    )


def _restore_flash(request: Request, page: CrudPage) -> bool:
    token = request.cookies.get(FLASH_COOKIE_NAME)
    if not token:
        return False
    try:
        notices = decode_flash_token(token)
    except (jwt.PyJWTError, ValueError):
        return True
    for level, message in notices:
        if level in {item.value for item in NoticeLevel}:
            page.notifier.notify(NoticeLevel(level), message)
    return True


def _redirect_to_resource(resource: ResourceSpec, page: CrudPage) -> RedirectResponse:
    response = RedirectResponse(url=f"/admin/{resource.key}", status_code=status.HTTP_303_SEE_OTHER)
    _set_flash_cookie(response, page)
    return response


def _login_redirect(request: Request) -> RedirectResponse:
    requested_path = request.url.path
    if request.method == "GET" and request.url.query:
        requested_path = f"{requested_path}?{request.url.query}"
    encoded_next = quote(requested_path, safe="")
    response = RedirectResponse(
        url=f"{LOGIN_PATH}?next={encoded_next}",
        status_code=status.HTTP_303_SEE_OTHER,
    )
    if request.cookies.get(SESSION_COOKIE_NAME):
        _clear_session_cookie(response)
    return response


def _render(
    request: Request,
    name: str,
    context: dict[str, Any],
    *,
    status_code: int = status.HTTP_200_OK,
) -> Response:
    csrf_token = request.cookies.get(CSRF_COOKIE_NAME) or _new_csrf_token()
    response = templates.TemplateResponse(
        request=request,
        name=name,
        context={"csrf_token": csrf_token, **context},
        status_code=status_code,
    )
    if not request.cookies.get(CSRF_COOKIE_NAME):
        _set_csrf_cookie(response, csrf_token)
    return response


def _render_login(
    request: Request,
    *,
    next_path: str,
    username: str = "",
    error_message: str | None = None,
    status_code: int = status.HTTP_200_OK,
) -> Response:
    return _render(
        request,
        "login.html",
        {"next_path": next_path, "username": username, "error_message": error_message},
        status_code=status_code,
    )


async def _mount(request: Request, page: GuardedPage, session: SessionContext) -> Response | None:
    navigator = RecordingNavigator()
    state = await page.mount(session, navigator)
    if state == PageState.REDIRECT:
        return _login_redirect(request)
    if state == PageState.LOADING_AUTH:
        return _render(request, "loading.html", {"message": "Checking authentication..."})
    return None


def _resource_or_404(resource_key: str) -> ResourceSpec:
    resource = get_resource(resource_key)
    if resource is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="unknown resource")
    return resource


def _handle_page_error(exc: Exception) -> None:
    if isinstance(exc, RecordNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, UnsupportedOperationError):
        raise HTTPException(status_code=status.HTTP_405_METHOD_NOT_ALLOWED, detail=str(exc)) from exc
    raise exc


async def _form_values(request: Request) -> dict[str, str]:
    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


def _render_resource_page(
    request: Request,
    page: CrudPage,
    session: SessionContext,
    *,
    submitted: dict[str, str] | None = None,
) -> Response:
    resource = page.resource
    form_values: dict[str, Any] = {}
    if page.form_open:
        if submitted is not None:
            form_values = submitted
        elif page.edit_target is not None:
            form_values = page.edit_target.model_dump()
    form_action = f"/admin/{resource.key}"
    if page.edit_target is not None:
        form_action = f"/admin/{resource.key}/{page.edit_target.id}"
    return _render(
        request,
        "resource_page.html",
        {
            "resource": resource,
            "resources": list(RESOURCES.values()),
            "user": session.current_user,
            "page_state": page.state.value,
            "cards": build_cards(page.items),
            "form_open": page.form_open,
            "editing": page.edit_target is not None,
            "form_action": form_action,
            "form_values": form_values,
            "detail": build_detail(resource, page.detail_target) if page.detail_target else None,
            "detail_id": page.detail_target.id if page.detail_target else None,
            "notices": page.notifier.drain(),
            "icon_choices": icon_choices(),
        },
    )


@router.get("/admin")
def admin_root(session: Session) -> RedirectResponse:
    target = DEFAULT_NEXT_PATH if session.is_authenticated else LOGIN_PATH
    return RedirectResponse(url=target, status_code=status.HTTP_303_SEE_OTHER)


@router.get("/admin/login")
def admin_login(
    request: Request,
    session: Session,
    next_path: str | None = Query(default=None, alias="next"),
) -> Response:
    safe_next = _sanitize_next_path(next_path)
    if session.is_authenticated:
        return RedirectResponse(url=safe_next, status_code=status.HTTP_303_SEE_OTHER)
    return _render_login(request, next_path=safe_next)


@router.post("/admin/login")
def admin_login_submit(
    request: Request,
    username: str = Form(...),
    password: str = Form(...),
    csrf_token: str = Form(...),
    next_path: str = Form(DEFAULT_NEXT_PATH, alias="next"),
) -> Response:
    safe_next = _sanitize_next_path(next_path)
    try:
        _verify_csrf(request, csrf_token)
    except HTTPException as exc:
        return _render_login(
            request,
            next_path=safe_next,
            username=username,
            error_message=str(exc.detail),
            status_code=exc.status_code,
        )

    if not verify_admin_credentials(username, password):
        return _render_login(
            request,
            next_path=safe_next,
            username=username,
            error_message="Invalid username or password",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    response = RedirectResponse(url=safe_next, status_code=status.HTTP_303_SEE_OTHER)
    _set_session_cookie(response, create_session_token(username))
    _set_csrf_cookie(response, _new_csrf_token())
    return response


@router.post("/admin/logout")
def admin_logout(request: Request, csrf_token: str = Form(...)) -> RedirectResponse:
    _verify_csrf(request, csrf_token)
    response = RedirectResponse(url=LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)
    _clear_session_cookie(response)
    _set_csrf_cookie(response, _new_csrf_token())
    return response


@router.get("/admin/dashboard")
async def admin_dashboard(request: Request, session: Session, client: ApiClient) -> Response:
    page = DashboardPage(client)
    early = await _mount(request, page, session)
    if early is not None:
        return early
    return _render(
        request,
        "dashboard.html",
        {
            "user": session.current_user,
            "resources": list(RESOURCES.values()),
            "stat_cards": page.stat_cards(),
            "sections": page.sections(),
        },
    )


@router.get("/admin/{resource_key}")
async def admin_resource_page(
    request: Request,
    resource_key: str,
    session: Session,
    client: ApiClient,
    new: bool = Query(default=False),
    edit: str | None = Query(default=None),
    view: str | None = Query(default=None),
) -> Response:
    resource = _resource_or_404(resource_key)
    page = CrudPage(resource, client)
    early = await _mount(request, page, session)
    if early is not None:
        return early

    try:
        if new:
            page.open_new()
        elif edit:
            page.open_existing(edit)
        if view:
            page.show_detail(view)
    except (RecordNotFoundError, UnsupportedOperationError) as exc:
        _handle_page_error(exc)
    had_flash = _restore_flash(request, page)
    response = _render_resource_page(request, page, session)
    if had_flash:
        response.delete_cookie(key=FLASH_COOKIE_NAME, path="/")
    return response


@router.post("/admin/{resource_key}")
async def admin_resource_create(
    request: Request,
    resource_key: str,
    session: Session,
    client: ApiClient,
) -> Response:
    resource = _resource_or_404(resource_key)
    submitted = await _form_values(request)
    _verify_csrf(request, submitted.get("csrf_token"))
    page = CrudPage(resource, client)
    early = await _mount(request, page, session)
    if early is not None:
        return early

    page.open_new()
    if await page.create_record(submitted) is not None:
        return _redirect_to_resource(resource, page)
    return _render_resource_page(request, page, session, submitted=submitted)


@router.post("/admin/{resource_key}/{record_id}")
async def admin_resource_update(
    request: Request,
    resource_key: str,
    record_id: str,
    session: Session,
    client: ApiClient,
) -> Response:
    resource = _resource_or_404(resource_key)
    submitted = await _form_values(request)
    _verify_csrf(request, submitted.get("csrf_token"))
    page = CrudPage(resource, client)
    early = await _mount(request, page, session)
    if early is not None:
        return early

    try:
        page.open_existing(record_id)
    except (RecordNotFoundError, UnsupportedOperationError) as exc:
        _handle_page_error(exc)
    if await page.submit(submitted) is not None:
        return _redirect_to_resource(resource, page)
    return _render_resource_page(request, page, session, submitted=submitted)


@router.post("/admin/{resource_key}/{record_id}/delete")
async def admin_resource_delete(
    request: Request,
    resource_key: str,
    record_id: str,
    session: Session,
    client: ApiClient,
) -> Response:
    resource = _resource_or_404(resource_key)
    submitted = await _form_values(request)
    _verify_csrf(request, submitted.get("csrf_token"))
    page = CrudPage(resource, client)
    early = await _mount(request, page, session)
    if early is not None:
        return early

    confirmed = submitted.get("confirmed") == "yes"
    deleted = await page.delete(record_id, lambda: confirmed)
    if deleted or not confirmed:
        return _redirect_to_resource(resource, page)
    return _render_resource_page(request, page, session)
