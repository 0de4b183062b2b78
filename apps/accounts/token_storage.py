"""
Device-local storage for the auth token.

One opaque string under a fixed key, durable across process restarts.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from django.conf import settings

logger = logging.getLogger(__name__)

AUTH_TOKEN_KEY = 'bet_platform_auth_token'


class TokenStore:
    """Interface for auth token storage."""

    def store(self, token: str) -> None:
        raise NotImplementedError

    def get(self) -> Optional[str]:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class MemoryTokenStore(TokenStore):
    """Non-durable store, for tests and short-lived processes."""

    def __init__(self, token: Optional[str] = None):
        self._token = token

    def store(self, token: str) -> None:
        self._token = token

    def get(self) -> Optional[str]:
        return self._token

    def clear(self) -> None:
        self._token = None


class FileTokenStore(TokenStore):
    """
    JSON file backed store.

    Writes go to a temporary file in the same directory which is fsynced and
    then renamed over the target, so a crash never leaves a truncated file.
    """

    def __init__(self, path=None, key: str = AUTH_TOKEN_KEY):
        if path is None:
            path = settings.AUTH_TOKEN_STORE_PATH
        self.path = Path(path)
        self.key = key

    def _read(self) -> dict:
        try:
            with open(self.path, encoding='utf-8') as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.error("Unreadable token store %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix='.tokens-')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as fh:
                json.dump(data, fh)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def store(self, token: str) -> None:
        data = self._read()
        data[self.key] = token
        self._write(data)

    def get(self) -> Optional[str]:
        token = self._read().get(self.key)
        return token if isinstance(token, str) else None

    def clear(self) -> None:
        data = self._read()
        if self.key in data:
            del data[self.key]
            self._write(data)
