from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional

import api.client as client
import api.crud as crud
from api import cache
from api.client import ApiError
from api.models import User
from utils.config import settings
from utils.logger import get_logger

_logger = get_logger(__name__)

UserType = Literal["admin", "seller"]


@dataclass
class SessionState:
    """
    The one session object shared by screens.

    Fields:
      - token: bearer token, pushed into the api client
      - user_type: "admin" | "seller" | None when logged out
      - profile: the logged-in admin or seller

    Only ``token`` and ``user_type`` are persisted. They change at
    login/register/logout (or on a 401) and are never re-read from disk
    after ``load``.
    """

    token: Optional[str] = None
    user_type: Optional[UserType] = None
    profile: Optional[User] = None
    path: Path = field(default_factory=lambda: Path(settings.SESSION_FILE))

    def __post_init__(self):
        client.on_unauthorized(self._handle_unauthorized)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def role(self) -> UserType:
        return self.user_type or "admin"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def load(self) -> None:
        """Read persisted token and userType, if any."""
        if not self.path.exists():
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            _logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return
        self.token = data.get("token") or None
        self.user_type = data.get("userType") or None
        client.set_token(self.token)

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"token": self.token, "userType": self.user_type}, f)

    def clear(self) -> None:
        self.token = None
        self.user_type = None
        self.profile = None
        client.set_token(None)
        cache.clear()
        if self.path.exists():
            self.path.unlink()

    def _handle_unauthorized(self) -> None:
        if self.token:
            _logger.info("Token rejected by backend, session cleared.")
        self.clear()

    async def restore(self) -> bool:
        """Validate a persisted token against /auth/me; clears the session on failure."""
        if not self.token:
            return False
        try:
            self.profile = await crud.get_me()
        except ApiError as e:
            _logger.info(f"Auth check failed: {e.message}")
            self.clear()
            return False
        if self.profile is None:
            self.clear()
            return False
        return True

    async def login(self, email: str, password: str) -> UserType:
        data = await crud.login(email, password)
        self._start(data)
        return self.role

    async def register(self, username: str, email: str, password: str, invite_code: str = "") -> None:
        data = await crud.register(username, email, password, invite_code)
        self._start({**data, "userType": "admin"})

    def _start(self, data: dict) -> None:
        token = (data or {}).get("token")
        if not token:
            raise ApiError("Login failed")
        profile = data.get("admin") or data.get("user")
        self.token = token
        self.user_type = data.get("userType") or "admin"
        self.profile = User.from_json(profile) if profile else None
        client.set_token(token)
        self.save()

    async def logout(self) -> None:
        """Tell the backend, then always drop local state."""
        try:
            if self.token:
                await crud.logout()
        except ApiError as e:
            _logger.error(f"Logout error: {e.message}")
        finally:
            self.clear()
