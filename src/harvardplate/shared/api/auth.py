"""
Request authentication.

Three ways in, checked in order:

1. `X-Telegram-Init-Data`: Telegram Mini App init data, HMAC-signed with the bot token;
2. `Authorization: Bearer <SERVICE_TOKEN>` plus `X-User-Id`: trusted backends such as the bot;
3. `X-User-Id` alone, only when AUTH_DISABLED is set (local development).
"""
from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time
from typing import Literal, Optional
from urllib.parse import parse_qsl

from fastapi import Depends, Header
from pydantic import BaseModel

from harvardplate.shared.api.deps import get_settings
from harvardplate.shared.api.errors import AppError
from harvardplate.shared.config.settings import Settings
from harvardplate.shared.utils.id_utils import parse_telegram_id

logger = logging.getLogger(__name__)


class InitDataError(ValueError):
    pass


class AuthenticatedUser(BaseModel):
    telegram_id: int
    username: Optional[str] = None
    via: Literal["telegram", "service", "dev"]


def sign_init_data(fields: dict, bot_token: str) -> str:
    """Hash for a set of init-data fields, as Telegram computes it."""
    check_string = "\n".join(f"{k}={v}" for k, v in sorted(fields.items()))
    secret_key = hmac.new(b"WebAppData", bot_token.encode(), hashlib.sha256).digest()
    return hmac.new(secret_key, check_string.encode(), hashlib.sha256).hexdigest()


def verify_init_data(init_data: str, bot_token: str, *, max_age: int, now: Optional[float] = None) -> dict:
    """
    Validate Telegram Mini App init data and return the decoded `user` object.
    """
    if not bot_token:
        raise InitDataError("BOT_TOKEN is not configured")

    fields = dict(parse_qsl(init_data or "", keep_blank_values=True))
    received = fields.pop("hash", None)
    if not received:
        raise InitDataError("hash is missing")
    if not hmac.compare_digest(sign_init_data(fields, bot_token), received):
        raise InitDataError("hash mismatch")

    try:
        auth_date = int(fields.get("auth_date", "0"))
    except ValueError as e:
        raise InitDataError("auth_date is not a number") from e
    current = time.time() if now is None else now
    if max_age > 0 and current - auth_date > max_age:
        raise InitDataError("init data expired")

    try:
        user = json.loads(fields.get("user") or "")
    except json.JSONDecodeError as e:
        raise InitDataError("user is not valid JSON") from e
    if not isinstance(user, dict) or parse_telegram_id(user.get("id")) is None:
        raise InitDataError("user id is missing")
    return user


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return None


async def get_current_user(
    x_telegram_init_data: Optional[str] = Header(None),
    authorization: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None),
    cfg: Settings = Depends(get_settings),
) -> AuthenticatedUser:
    if x_telegram_init_data:
        try:
            user = verify_init_data(x_telegram_init_data, cfg.BOT_TOKEN, max_age=cfg.AUTH_MAX_AGE_SECONDS)
        except InitDataError as e:
            logger.warning(f"Telegram init data rejected: {e}")
            raise AppError("Invalid or expired token", 401, "INVALID_TOKEN")
        return AuthenticatedUser(telegram_id=int(user["id"]), username=user.get("username"), via="telegram")

    token = _bearer_token(authorization)
    if token:
        if not cfg.SERVICE_TOKEN or not hmac.compare_digest(token, cfg.SERVICE_TOKEN):
            raise AppError("Invalid or expired token", 401, "INVALID_TOKEN")
        telegram_id = parse_telegram_id(x_user_id)
        if telegram_id is None:
            raise AppError("User identifier is required", 401, "USER_ID_REQUIRED")
        return AuthenticatedUser(telegram_id=telegram_id, via="service")

    if cfg.AUTH_DISABLED and x_user_id:
        telegram_id = parse_telegram_id(x_user_id)
        if telegram_id is None:
            raise AppError("User identifier is required", 401, "USER_ID_REQUIRED")
        return AuthenticatedUser(telegram_id=telegram_id, via="dev")

    raise AppError("Authentication required", 401, "AUTH_REQUIRED")


def require_user_id(value: object) -> int:
    telegram_id = parse_telegram_id(value)
    if telegram_id is None:
        raise AppError("User ID is required", 400, "BAD_REQUEST")
    return telegram_id


def ensure_owner(user: AuthenticatedUser, telegram_id: int) -> None:
    if user.telegram_id != telegram_id:
        raise AppError("Access denied", 403, "FORBIDDEN")
