from __future__ import annotations

import os
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

SESSION_SECRET = os.getenv("SESSION_SECRET", "dev-secret-change-me")
SESSION_ALGORITHM = os.getenv("SESSION_ALGORITHM", "HS256")
SESSION_EXPIRES_MIN = int(os.getenv("SESSION_EXPIRES_MIN", "480"))
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin")
FLASH_EXPIRES_MIN = 5


def create_session_token(username: str, *, expires_minutes: int | None = None) -> str:
    now = datetime.now(UTC)
    expire_delta = timedelta(minutes=expires_minutes or SESSION_EXPIRES_MIN)
    payload: dict[str, Any] = {
        "sub": username,
        "role": "admin",
        "iat": int(now.timestamp()),
        "exp": int((now + expire_delta).timestamp()),
    }
    return jwt.encode(payload, SESSION_SECRET, algorithm=SESSION_ALGORITHM)


def decode_session_token(token: str) -> dict[str, Any]:
    decoded = jwt.decode(token, SESSION_SECRET, algorithms=[SESSION_ALGORITHM])
    if not isinstance(decoded, dict):
        raise ValueError("Invalid token payload")
    if not isinstance(decoded.get("sub"), str):
        raise ValueError("Invalid token subject")
    return decoded


def verify_admin_credentials(username: str, password: str) -> bool:
    username_ok = secrets.compare_digest(username.encode(), ADMIN_USERNAME.encode())
    password_ok = secrets.compare_digest(password.encode(), ADMIN_PASSWORD.encode())
    return username_ok and password_ok


def create_flash_token(notices: list[tuple[str, str]]) -> str:
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "notices": [list(item) for item in notices],
        "exp": int((now + timedelta(minutes=FLASH_EXPIRES_MIN)).timestamp()),
    }
    return jwt.encode(payload, SESSION_SECRET, algorithm=SESSION_ALGORITHM)


def decode_flash_token(token: str) -> list[tuple[str, str]]:
    decoded = jwt.decode(token, SESSION_SECRET, algorithms=[SESSION_ALGORITHM])
    notices = decoded.get("notices") if isinstance(decoded, dict) else None
    if not isinstance(notices, list):
        raise ValueError("Invalid flash payload")
    return [
        (str(item[0]), str(item[1]))
        for item in notices
        if isinstance(item, list) and len(item) == 2
    ]
