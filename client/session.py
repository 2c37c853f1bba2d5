"""Client-held session state: the bearer token and the signed-in user."""
import json
import logging
import os

from client import config

logger = logging.getLogger(__name__)


class SessionContext:
    """Token and user persisted to a JSON file.

    Nothing is read from disk implicitly; callers ``load()`` at startup,
    ``save()`` after login and ``clear()`` on logout.
    """

    def __init__(self, path: str | None = None) -> None:
        self.path = path or config.SESSION_FILE
        self.token: str | None = None
        self.user: dict | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def role(self) -> str | None:
        return (self.user or {}).get("role")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def load(self) -> "SessionContext":
        try:
            with open(self.path, encoding="utf-8") as handle:
                stored = json.load(handle)
        except FileNotFoundError:
            self.token, self.user = None, None
            return self
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable session file %s", self.path)
            self.token, self.user = None, None
            return self

        self.token = stored.get("token")
        self.user = stored.get("user")
        return self

    def save(self, token: str, user: dict) -> None:
        self.token = token
        self.user = user
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as handle:
            json.dump({"token": token, "user": user}, handle)

    def clear(self) -> None:
        self.token = None
        self.user = None
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass

    def auth_headers(self) -> dict:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}
