import asyncio
import os
import sqlite3
import sys
import tempfile
import unittest
from datetime import timedelta
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from db import crud  # noqa: E402
from db import database as db_database  # noqa: E402
from db.auth import AuthClient, AuthError, AuthEvent  # noqa: E402
from db.models import UserRole  # noqa: E402
from utils.state import BusinessSnapshot, SessionStore  # noqa: E402


class AuthTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        db_database.DB_PATH = os.path.join(self.temp_dir.name, "auth.sqlite")
        db_database.SEED_DATA = False
        db_database._initialized = False

        self.auth = AuthClient()
        self.events = []
        self.auth.on_auth_state_change(
            lambda event, session: self.events.append((event, session))
        )

    def tearDown(self):
        db_database.SEED_DATA = True
        self.temp_dir.cleanup()

    async def test_initial_session_is_empty(self):
        self.assertIsNone(await self.auth.initialize())
        self.assertEqual(self.events, [(AuthEvent.INITIAL_SESSION, None)])

    async def test_sign_up_creates_viewer_profile(self):
        uid = await self.auth.sign_up("Ops@AJCgroup.com", "secret1")
        profile = await crud.get_profile(uid)
        self.assertEqual(profile.email, "ops@ajcgroup.com")
        self.assertEqual(profile.full_name, "ops")
        self.assertEqual(profile.role, UserRole.VIEWER)
        # signing up does not sign in
        self.assertIsNone(self.auth.get_session())
        self.assertEqual(self.events, [])

    async def test_sign_up_rejections(self):
        with self.assertRaisesRegex(AuthError, "invalid format"):
            await self.auth.sign_up("not-an-email", "secret1")
        with self.assertRaisesRegex(AuthError, "at least 6"):
            await self.auth.sign_up("a@b.com", "123")

        await self.auth.sign_up("a@b.com", "secret1")
        with self.assertRaisesRegex(AuthError, "already registered"):
            await self.auth.sign_up("A@B.com", "another1")

    async def test_sign_in_and_out(self):
        uid = await self.auth.sign_up("a@b.com", "secret1")

        session = await self.auth.sign_in("a@b.com", "secret1")
        self.assertEqual(session.user_id, uid)
        self.assertFalse(session.expired)
        self.assertIs(self.auth.get_session(), session)

        await self.auth.sign_out()
        self.assertIsNone(self.auth.get_session())
        self.assertEqual(
            [e for e, _ in self.events], [AuthEvent.SIGNED_IN, AuthEvent.SIGNED_OUT]
        )
        self.assertIs(self.events[0][1], session)
        self.assertIsNone(self.events[1][1])

    async def test_wrong_credentials(self):
        await self.auth.sign_up("a@b.com", "secret1")
        with self.assertRaisesRegex(AuthError, "Invalid login credentials"):
            await self.auth.sign_in("a@b.com", "wrong-password")
        with self.assertRaisesRegex(AuthError, "Invalid login credentials"):
            await self.auth.sign_in("nobody@b.com", "secret1")
        with self.assertRaisesRegex(AuthError, "required"):
            await self.auth.sign_in("", "")
        self.assertEqual(self.events, [])

    async def test_refresh_extends_session(self):
        await self.auth.sign_up("a@b.com", "secret1")
        first = await self.auth.sign_in("a@b.com", "secret1")
        refreshed = await self.auth.refresh_session()
        self.assertEqual(refreshed.access_token, first.access_token)
        self.assertGreaterEqual(refreshed.expires_at, first.expires_at)
        self.assertEqual(self.events[-1], (AuthEvent.TOKEN_REFRESHED, refreshed))

    async def test_refresh_without_session(self):
        with self.assertRaises(AuthError):
            await self.auth.refresh_session()

    async def test_expired_session_is_dropped(self):
        auth = AuthClient(session_ttl=timedelta(seconds=-1))
        await auth.sign_up("a@b.com", "secret1")
        await auth.sign_in("a@b.com", "secret1")
        self.assertIsNone(auth.get_session())

    async def test_async_listeners_are_awaited_and_unsubscribe(self):
        seen = []

        async def listener(event, session):
            seen.append(event)

        sub = self.auth.on_auth_state_change(listener)
        await self.auth.initialize()
        self.assertEqual(seen, [AuthEvent.INITIAL_SESSION])

        sub.unsubscribe()
        await self.auth.sign_out()
        self.assertEqual(seen, [AuthEvent.INITIAL_SESSION])

    def make_session_store(self, auth):
        async def nothing():
            return []

        async def no_profile(user_id):
            return None

        store = SessionStore(auth, BusinessSnapshot(nothing, nothing), no_profile)
        transitions = []
        store.subscribe(lambda s, p: transitions.append(s))
        return store, transitions

    async def test_sign_out_store_failure_still_signs_out(self):
        store, transitions = self.make_session_store(self.auth)
        await self.auth.sign_up("a@b.com", "secret1")
        await self.auth.sign_in("a@b.com", "secret1")
        self.assertIsNotNone(store.session)

        locked = sqlite3.OperationalError("database is locked")
        with patch("db.auth.connect", side_effect=locked):
            with self.assertRaisesRegex(AuthError, "database is locked"):
                await self.auth.sign_out()

        self.assertIsNone(self.auth.get_session())
        self.assertIsNone(store.session)
        self.assertEqual(self.events[-1], (AuthEvent.SIGNED_OUT, None))
        self.assertIsNone(transitions[-1])

    async def test_refresh_store_failure_is_auth_error(self):
        await self.auth.sign_up("a@b.com", "secret1")
        session = await self.auth.sign_in("a@b.com", "secret1")
        locked = sqlite3.OperationalError("database is locked")
        with patch("db.auth.connect", side_effect=locked):
            with self.assertRaises(AuthError):
                await self.auth.refresh_session()
        self.assertIs(self.auth.get_session(), session)

    async def test_expiry_is_announced_as_sign_out(self):
        auth = AuthClient(session_ttl=timedelta(milliseconds=300))
        store, transitions = self.make_session_store(auth)
        events = []
        auth.on_auth_state_change(lambda event, session: events.append(event))

        await auth.sign_up("a@b.com", "secret1")
        await auth.sign_in("a@b.com", "secret1")
        self.assertTrue(store.is_authenticated)

        await asyncio.sleep(0.8)
        self.assertEqual(events, [AuthEvent.SIGNED_IN, AuthEvent.SIGNED_OUT])
        self.assertIsNone(auth.get_session())
        self.assertIsNone(store.session)
        self.assertFalse(store.is_authenticated)
        self.assertIsNone(transitions[-1])

    async def test_refresh_pushes_expiry_back(self):
        auth = AuthClient(session_ttl=timedelta(milliseconds=400))
        events = []
        auth.on_auth_state_change(lambda event, session: events.append(event))
        await auth.sign_up("a@b.com", "secret1")
        await auth.sign_in("a@b.com", "secret1")

        await asyncio.sleep(0.2)
        await auth.refresh_session()
        await asyncio.sleep(0.3)
        # the first deadline has passed, the refreshed one has not
        self.assertNotIn(AuthEvent.SIGNED_OUT, events)
        self.assertIsNotNone(auth.get_session())

    def test_oauth_url(self):
        url = self.auth.sign_in_with_oauth("github", "https://localhost:3005")
        parsed = urlparse(url)
        self.assertTrue(parsed.path.endswith("/authorize"))
        query = parse_qs(parsed.query)
        self.assertEqual(query["provider"], ["github"])
        self.assertEqual(query["redirect_to"], ["https://localhost:3005"])

    def test_oauth_unsupported_provider(self):
        with self.assertRaisesRegex(AuthError, "Unsupported provider: gitlab"):
            self.auth.sign_in_with_oauth("gitlab", "http://localhost")


if __name__ == "__main__":
    unittest.main()
