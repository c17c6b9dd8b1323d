"""
Auth collaborator: password sign-up/sign-in, sign-out, OAuth URL building and
an auth-state-change stream, backed by the local store.
"""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import inspect
import re
import secrets
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, List, Optional, Set
from urllib.parse import urlencode

from db.database import connect
from db.models import Session, UserRole
from utils.config import get_settings
from utils.logger import get_logger

_logger = get_logger(__name__)

OAUTH_PROVIDERS = ("github", "google", "azure")
MIN_PASSWORD_LENGTH = 6
_PBKDF2_ROUNDS = 120_000
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class AuthError(Exception):
    """Raised for any rejected auth request; the message is shown on the form."""


class AuthEvent(str, Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


AuthCallback = Callable[[AuthEvent, Optional[Session]], Any]


@dataclass
class Subscription:
    _client: "AuthClient"
    _callback: AuthCallback

    def unsubscribe(self) -> None:
        if self._callback in self._client._listeners:
            self._client._listeners.remove(self._callback)


def _hash_password(password: str, salt: str) -> str:
    return hashlib.pbkdf2_hmac(
        "sha256", password.encode(), bytes.fromhex(salt), _PBKDF2_ROUNDS
    ).hex()


class AuthClient:
    """
    Issues sessions and broadcasts every session transition to the
    listeners registered with on_auth_state_change().

    Listeners may be plain functions or coroutine functions; coroutine
    listeners are awaited in registration order before the triggering call
    returns. A session that runs out is announced as SIGNED_OUT by a timer
    armed when the session is issued or refreshed.
    """

    def __init__(self, session_ttl: Optional[timedelta] = None) -> None:
        self._session: Optional[Session] = None
        self._listeners: List[AuthCallback] = []
        self._expiry_timer: Optional[asyncio.TimerHandle] = None
        self._pending: Set[asyncio.Task] = set()
        self._ttl = session_ttl or timedelta(
            seconds=get_settings().session_ttl_seconds
        )

    # ---------------------------
    # Stream
    # ---------------------------

    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        self._listeners.append(callback)
        return Subscription(self, callback)

    async def _emit(self, event: AuthEvent, session: Optional[Session]) -> None:
        _logger.debug(f"Auth event {event.value} (session={session is not None})")
        for callback in list(self._listeners):
            result = callback(event, session)
            if inspect.isawaitable(result):
                await result

    async def initialize(self) -> Optional[Session]:
        """Announce the session present at start-up (possibly none)."""
        session = self.get_session()
        await self._emit(AuthEvent.INITIAL_SESSION, session)
        return session

    def get_session(self) -> Optional[Session]:
        if self._session is not None and self._session.expired:
            self._expire(self._session)
        return self._session

    # ---------------------------
    # Expiry
    # ---------------------------

    def _set_session(self, session: Optional[Session]) -> None:
        """Store the session and arm a timer for its expiry."""
        if self._expiry_timer is not None:
            self._expiry_timer.cancel()
            self._expiry_timer = None
        self._session = session
        if session is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        delay = (session.expires_at - datetime.now(timezone.utc)).total_seconds()
        self._expiry_timer = loop.call_later(max(delay, 0), self._expire, session)

    def _expire(self, session: Session) -> None:
        # a session replaced by refresh or sign-out is no longer ours to end
        if self._session is not session:
            return
        _logger.info(f"Session of {session.email} expired.")
        self._set_session(None)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(self._emit(AuthEvent.SIGNED_OUT, None))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    # ---------------------------
    # Password auth
    # ---------------------------

    async def sign_up(self, email: str, password: str) -> str:
        """
        Register a new account and its viewer profile. Returns the user id.
        Does not sign the user in.
        """
        email = (email or "").strip().lower()
        if not _EMAIL_RE.match(email):
            raise AuthError("Unable to validate email address: invalid format")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthError(
                f"Password should be at least {MIN_PASSWORD_LENGTH} characters."
            )

        user_id = str(uuid.uuid4())
        salt = secrets.token_hex(16)
        try:
            async with connect() as conn:
                cur = await conn.execute(
                    "SELECT 1 FROM users WHERE email = ? LIMIT 1;", (email,)
                )
                taken = await cur.fetchone()
                await cur.close()
                if taken:
                    raise AuthError("User already registered")

                await conn.execute(
                    "INSERT INTO users(id, email, pwd_hash, salt) VALUES (?, ?, ?, ?);",
                    (user_id, email, _hash_password(password, salt), salt),
                )
                await conn.execute(
                    "INSERT INTO profiles(id, email, full_name, role) VALUES (?, ?, ?, ?);",
                    (user_id, email, email.split("@")[0], UserRole.VIEWER.value),
                )
                await conn.commit()
        except sqlite3.Error as e:
            raise AuthError(str(e)) from e

        _logger.info(f"Registered user {email}")
        return user_id

    async def sign_in(self, email: str, password: str) -> Session:
        email = (email or "").strip().lower()
        if not email or not password:
            raise AuthError("Email and password are required.")

        try:
            async with connect() as conn:
                cur = await conn.execute(
                    "SELECT id, pwd_hash, salt FROM users WHERE email = ?;", (email,)
                )
                row = await cur.fetchone()
                await cur.close()
                if not row or not hmac.compare_digest(
                    row["pwd_hash"], _hash_password(password, row["salt"])
                ):
                    raise AuthError("Invalid login credentials")

                session = Session(
                    access_token=secrets.token_urlsafe(32),
                    user_id=row["id"],
                    email=email,
                    expires_at=datetime.now(timezone.utc) + self._ttl,
                )
                await conn.execute(
                    "INSERT INTO auth_sessions(access_token, user_id, expires_at) VALUES (?, ?, ?);",
                    (session.access_token, session.user_id, session.expires_at.isoformat()),
                )
                await conn.commit()
        except sqlite3.Error as e:
            raise AuthError(str(e)) from e

        self._set_session(session)
        _logger.info(f"User {email} signed in")
        await self._emit(AuthEvent.SIGNED_IN, session)
        return session

    async def refresh_session(self) -> Session:
        """Extend the current session; raises if there is none."""
        session = self.get_session()
        if session is None:
            raise AuthError("Auth session missing!")
        refreshed = Session(
            access_token=session.access_token,
            user_id=session.user_id,
            email=session.email,
            expires_at=datetime.now(timezone.utc) + self._ttl,
        )
        try:
            async with connect() as conn:
                await conn.execute(
                    "UPDATE auth_sessions SET expires_at = ? WHERE access_token = ?;",
                    (refreshed.expires_at.isoformat(), refreshed.access_token),
                )
                await conn.commit()
        except sqlite3.Error as e:
            raise AuthError(str(e)) from e
        self._set_session(refreshed)
        await self._emit(AuthEvent.TOKEN_REFRESHED, refreshed)
        return refreshed

    async def sign_out(self) -> None:
        """
        Drop the local session and announce SIGNED_OUT, even when the
        stored session row could not be removed. That failure is raised
        as AuthError afterwards.
        """
        session = self._session
        self._set_session(None)
        try:
            if session is not None:
                async with connect() as conn:
                    await conn.execute(
                        "DELETE FROM auth_sessions WHERE access_token = ?;",
                        (session.access_token,),
                    )
                    await conn.commit()
                _logger.info(f"User {session.email} signed out")
        except sqlite3.Error as e:
            _logger.error(f"Error removing session of {session.email}: {e}")
            raise AuthError(str(e)) from e
        finally:
            await self._emit(AuthEvent.SIGNED_OUT, None)

    # ---------------------------
    # OAuth
    # ---------------------------

    def sign_in_with_oauth(self, provider: str, redirect_to: str) -> str:
        """
        Build the provider authorize URL. The redirect round trip is handled
        by the identity provider; the caller only opens the URL.
        """
        if provider not in OAUTH_PROVIDERS:
            raise AuthError(f"Unsupported provider: {provider}")
        _logger.info(f"Attempting OAuth with redirect to: {redirect_to}")
        query = urlencode({"provider": provider, "redirect_to": redirect_to})
        return f"{get_settings().oauth_base_url.rstrip('/')}/authorize?{query}"
