"""
Session and token management.

Tokens live in an injected key/value store instead of browser storage. Keys
carry a short hash of the backend URL so two environments never share a
token. The anonymous-user token is acquired at most once at a time: callers
that arrive while an acquisition is in flight wait on the same lock and pick
up the stored result.
"""
import asyncio
import json
import logging
import os
import random
import shutil
import string
import tempfile
import time
from typing import Any, Callable, Dict, Optional, Protocol

import httpx

from evista_partner.config.settings import settings
from evista_partner.services.backend_client import BackendError
from evista_partner.utils.helpers import env_suffix

logger = logging.getLogger(__name__)

INVALID_TOKEN_MARKER = "[object Object]"
MIN_TOKEN_LENGTH = 20
FCM_TOKEN_LENGTH = 163
AVATAR_URL = "https://ui-avatars.com/api/?name=Guest&background=6366f1&color=fff&size=200"


# ─── Storage ──────────────────────────────────────────────────────────────────

class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[Any]: ...
    def set(self, key: str, value: Any) -> None: ...
    def delete(self, key: str) -> None: ...
    def keys(self) -> list: ...


class MemoryStore:
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(initial or {})

    def get(self, key):
        return self._data.get(key)

    def set(self, key, value):
        self._data[key] = value

    def delete(self, key):
        self._data.pop(key, None)

    def keys(self):
        return list(self._data.keys())


class JsonFileStore:
    """Single-writer JSON file, rewritten atomically on every change"""

    def __init__(self, path: str = settings.SESSION_STORAGE_PATH):
        self.path = path

    def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Session file %s unreadable, starting empty: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, Any]) -> None:
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".session.", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(json.dumps(data, ensure_ascii=False, indent=2))
            shutil.move(tmp, self.path)
        finally:
            if os.path.exists(tmp):
                os.remove(tmp)

    def get(self, key):
        return self._load().get(key)

    def set(self, key, value):
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key):
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def keys(self):
        return list(self._load().keys())


# ─── Keys ─────────────────────────────────────────────────────────────────────

class SessionKeys:
    def __init__(self, base_url: str):
        suffix = env_suffix(base_url)
        self.suffix = suffix
        self.GUEST_TOKEN = f"evista_guest_token_{suffix}"
        self.GUEST_TOKEN_EXPIRY = f"evista_guest_token_expiry_{suffix}"
        self.USER_TOKEN = f"evista_user_token_{suffix}"
        self.USER_DATA = f"evista_user_data_{suffix}"
        self.USER_TOKEN_EXPIRY = f"evista_user_token_expiry_{suffix}"
        self.ADMIN_HOTEL_SLUG = f"evista_admin_hotel_slug_{suffix}"
        self.ADMIN_HOTEL_NAME = f"evista_admin_hotel_name_{suffix}"

    def all(self) -> list:
        return [v for k, v in vars(self).items() if k.isupper()]


def is_valid_token(token: Any, expiry: Any, now: float) -> bool:
    if not isinstance(token, str) or INVALID_TOKEN_MARKER in token or len(token) <= MIN_TOKEN_LENGTH:
        return False
    try:
        return now < float(expiry)
    except (TypeError, ValueError):
        return False


def _json_body(resp: httpx.Response) -> dict:
    try:
        body = resp.json()
    except ValueError:
        raise BackendError(502, "Invalid JSON from Evista backend", resp.text)
    if not isinstance(body, dict):
        raise BackendError(502, "Invalid token received from server", body)
    return body


def extract_token(payload: dict) -> Optional[str]:
    """Token from data.token, token.jwt_token, token or data.jwt_token"""
    data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
    token = payload.get("token")
    candidates = [
        data.get("token"),
        token.get("jwt_token") if isinstance(token, dict) else token,
        data.get("jwt_token"),
        payload.get("jwt_token"),
    ]
    for candidate in candidates:
        if isinstance(candidate, dict):
            candidate = candidate.get("jwt_token")
        if isinstance(candidate, str) and candidate:
            return candidate
    return None


# ─── Guest session ────────────────────────────────────────────────────────────

class GuestSession:
    """Short-lived guest token (24 h)"""

    def __init__(
        self,
        store: KeyValueStore,
        http: httpx.AsyncClient,
        base_url: str = settings.EVISTA_API_URL,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.keys = SessionKeys(self.base_url)
        self.clock = clock

    async def get_token(self) -> str:
        token = self.store.get(self.keys.GUEST_TOKEN)
        expiry = self.store.get(self.keys.GUEST_TOKEN_EXPIRY)
        if is_valid_token(token, expiry, self.clock()):
            return token
        if token is not None:
            self.clear_token()
        return await self.refresh_token()

    async def refresh_token(self) -> str:
        try:
            resp = await self.http.post(f"{self.base_url}/api/auth/sign/guest", headers={"Content-Type": "application/json"})
        except httpx.HTTPError as e:
            logger.error("❌ Guest token request failed: %s", e)
            raise BackendError(503, "Evista backend unreachable", str(e))
        if resp.status_code >= 400:
            raise BackendError(resp.status_code, "Failed to get guest token")
        token = extract_token(_json_body(resp))
        if not token:
            raise BackendError(502, "Invalid token received from server")
        expiry = self.clock() + settings.GUEST_TOKEN_LIFETIME_HOURS * 3600
        self.store.set(self.keys.GUEST_TOKEN, token)
        self.store.set(self.keys.GUEST_TOKEN_EXPIRY, expiry)
        logger.info("🔑 Guest token refreshed")
        return token

    def clear_token(self) -> None:
        self.store.delete(self.keys.GUEST_TOKEN)
        self.store.delete(self.keys.GUEST_TOKEN_EXPIRY)

    def get_profile(self) -> Optional[dict]:
        return None


# ─── Anonymous user session ───────────────────────────────────────────────────

def _random_id(length: int = 8) -> str:
    return "".join(random.choices(string.ascii_uppercase + string.digits, k=length))


def random_user_credentials(now_ms: Optional[int] = None) -> dict:
    """Throwaway google-sign-in payload for an anonymous booking account"""
    random_id = _random_id()
    timestamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return {
        "email": f"user.{random_id.lower()}.{timestamp}@evista.temp",
        "google_id": random.randint(1000000000, 9999999999),
        "fullname": f"User-{random_id}",
        "profile_picture": AVATAR_URL,
        "google_token": f"temp_token_{random_id}_{timestamp}",
        "fcm_token": f"fcm_{random_id}_{timestamp}".ljust(FCM_TOKEN_LENGTH, "0"),
    }


class UserSession:
    """Anonymous user account token (30 days) used for the booking flow"""

    def __init__(
        self,
        store: KeyValueStore,
        http: httpx.AsyncClient,
        base_url: str = settings.EVISTA_API_URL,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.keys = SessionKeys(self.base_url)
        self.clock = clock
        self._lock = asyncio.Lock()

    def _stored_token(self) -> Optional[str]:
        token = self.store.get(self.keys.USER_TOKEN)
        expiry = self.store.get(self.keys.USER_TOKEN_EXPIRY)
        if token is None and expiry is None:
            return None
        if is_valid_token(token, expiry, self.clock()):
            return token
        self.clear_token()
        return None

    async def get_token(self) -> str:
        """Return the stored token or create a fresh anonymous account."""
        token = self._stored_token()
        if token:
            return token

        async with self._lock:
            # Double-check after acquiring lock (another coroutine may have created the account)
            token = self._stored_token()
            if token:
                return token
            return await self._create_user()

    async def _create_user(self) -> str:
        credentials = random_user_credentials(int(self.clock() * 1000))
        try:
            resp = await self.http.post(f"{self.base_url}/api/auth/sign/google", json=credentials)
        except httpx.HTTPError as e:
            logger.error("❌ Anonymous account request failed: %s", e)
            raise BackendError(503, "Evista backend unreachable", str(e))
        if resp.status_code >= 400:
            raise BackendError(resp.status_code, f"Failed to create user: {resp.status_code}")

        data = _json_body(resp)
        token = extract_token(data)
        if not token:
            raise BackendError(502, "Invalid token received from server")
        user = data.get("data") if isinstance(data.get("data"), dict) else data.get("user")

        self.store.set(self.keys.USER_TOKEN, token)
        self.store.set(self.keys.USER_DATA, user)
        self.store.set(self.keys.USER_TOKEN_EXPIRY, self.clock() + settings.USER_TOKEN_LIFETIME_DAYS * 86400)
        logger.info("👤 Anonymous booking account created: %s", credentials["fullname"])
        return token

    def clear_token(self) -> None:
        self.store.delete(self.keys.USER_TOKEN)
        self.store.delete(self.keys.USER_DATA)
        self.store.delete(self.keys.USER_TOKEN_EXPIRY)

    def get_profile(self) -> Optional[dict]:
        profile = self.store.get(self.keys.USER_DATA)
        return profile if isinstance(profile, dict) else None


# ─── Admin profile ────────────────────────────────────────────────────────────

class AdminProfile:
    """Hotel slug and name of the logged-in partner admin"""

    def __init__(self, store: KeyValueStore, base_url: str = settings.EVISTA_API_URL):
        self.store = store
        self.keys = SessionKeys(base_url.rstrip("/"))

    def remember(self, slug: str, name: str) -> None:
        self.store.set(self.keys.ADMIN_HOTEL_SLUG, slug)
        self.store.set(self.keys.ADMIN_HOTEL_NAME, name)

    def hotel(self) -> Optional[dict]:
        slug = self.store.get(self.keys.ADMIN_HOTEL_SLUG)
        if not slug:
            return None
        return {"slug": slug, "name": self.store.get(self.keys.ADMIN_HOTEL_NAME)}


def logout(store: KeyValueStore, base_url: str = settings.EVISTA_API_URL) -> None:
    """Remove every session key for this backend"""
    for key in SessionKeys(base_url.rstrip("/")).all():
        store.delete(key)
    logger.info("👋 Session cleared")
