"""Durable client-side session storage

The session is kept as three keys in a small key/value backend: the token,
the JSON-serialized user and an optional expiry. The store never returns
a token without a user (or the reverse); a partial or corrupt record is
deleted on read.
"""

import json
import logging
import os
import platform
import time
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from pydantic import ValidationError

from settings import SESSION_FILE
from .models import Session, SessionUser

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth_token"
USER_KEY = "auth_user"
EXPIRES_AT_KEY = "auth_expires_at"
AUTH_STORAGE_KEYS = (TOKEN_KEY, USER_KEY, EXPIRES_AT_KEY)


class SessionStorageError(Exception):
    """The backend could not persist the session"""


class KeyValueBackend(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryBackend:
    """In-process backend, used for tests and ephemeral sessions"""

    def __init__(self):
        self.data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class FileBackend:
    """JSON file backend with owner-only permissions"""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path if path else SESSION_FILE)
        self._ensure_secure_directory()

    def _ensure_secure_directory(self):
        """Create parent directory with secure permissions"""
        parent_dir = self.path.parent
        if not parent_dir.exists():
            parent_dir.mkdir(parents=True, exist_ok=True)
            if platform.system() != "Windows":
                os.chmod(parent_dir, 0o700)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning(f"Session file {self.path} is corrupt, removing it")
            self.path.unlink(missing_ok=True)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]):
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2))
        if platform.system() != "Windows":
            os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            if data:
                self._write(data)
            else:
                self.path.unlink()


class SessionStore:
    """save / load / clear / has_valid over a key/value backend"""

    def __init__(self, backend: Optional[KeyValueBackend] = None):
        self.backend = backend if backend is not None else FileBackend()

    def save(self, session: Session) -> None:
        """Persist a complete session

        Raises:
            SessionStorageError: If the backend fails; nothing partial is left behind
        """
        try:
            self.backend.set(TOKEN_KEY, session.token)
            self.backend.set(USER_KEY, session.user.model_dump_json(exclude_none=True))
            if session.expires_at is not None:
                self.backend.set(EXPIRES_AT_KEY, str(session.expires_at))
            else:
                self.backend.delete(EXPIRES_AT_KEY)
        except OSError as e:
            logger.error(f"Failed to save session: {e}")
            self.clear()
            raise SessionStorageError("Failed to save authentication data") from e

        logger.info(f"Session saved for {session.user.email}")

    def _load_user(self) -> Optional[SessionUser]:
        raw = self.backend.get(USER_KEY)
        if raw is None:
            return None
        try:
            return SessionUser.model_validate_json(raw)
        except ValidationError:
            logger.warning("Stored user data is invalid, removing it")
            self.backend.delete(USER_KEY)
            return None

    def _load_expiry(self) -> Optional[int]:
        raw = self.backend.get(EXPIRES_AT_KEY)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            logger.warning("Stored expiry is invalid, removing it")
            self.backend.delete(EXPIRES_AT_KEY)
            return None

    def load(self) -> Optional[Session]:
        """Read the stored session

        Returns:
            The session, or None if absent, partial or unreadable
        """
        try:
            token = self.backend.get(TOKEN_KEY)
            user = self._load_user()

            if not token or user is None:
                if token or user is not None or self.backend.get(EXPIRES_AT_KEY) is not None:
                    logger.warning("Incomplete session data found, clearing it")
                    self.clear()
                return None

            return Session(user=user, token=token, expires_at=self._load_expiry())
        except OSError as e:
            logger.error(f"Failed to read session: {e}")
            return None

    def clear(self) -> None:
        """Remove every session key; safe with no prior state"""
        for key in AUTH_STORAGE_KEYS:
            try:
                self.backend.delete(key)
            except OSError as e:
                logger.error(f"Failed to delete {key}: {e}")

    def has_valid(self, now: Optional[float] = None) -> bool:
        """True if a complete, unexpired session is stored; clears expired ones"""
        session = self.load()
        if session is None:
            return False

        if session.expires_at is not None:
            current = time.time() if now is None else now
            if current >= session.expires_at:
                logger.info("Stored session has expired")
                self.clear()
                return False

        return True

    def get_storage_info(self) -> Dict[str, Any]:
        """Which keys are present, without exposing the token"""
        user = self._load_user()
        return {
            "has_token": bool(self.backend.get(TOKEN_KEY)),
            "has_user": user is not None,
            "has_expiry": self.backend.get(EXPIRES_AT_KEY) is not None,
            "user_email": user.email if user else None,
        }
