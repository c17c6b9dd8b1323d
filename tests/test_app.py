import asyncio
import os
import sys
import tempfile
import unittest
from types import SimpleNamespace

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from textual.widgets import Input  # noqa: E402

from db import database as db_database  # noqa: E402
from main import DashboardApp  # noqa: E402
from utils.chat import ChatAssistant  # noqa: E402
from utils.state import GlobalState  # noqa: E402
from views.modal_chat import ChatModal  # noqa: E402


class ChatPanelTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        db_database.DB_PATH = os.path.join(self.temp_dir.name, "app.sqlite")
        db_database.SEED_DATA = True
        db_database._initialized = False

        self.gate = asyncio.Event()

        async def generate_content(**kwargs):
            await self.gate.wait()
            return SimpleNamespace(text="**3,100 cartons** of shrimp.")

        client = SimpleNamespace(
            aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate_content))
        )
        self.chat = ChatAssistant("gemini-2.5-flash", lambda: client)

    def tearDown(self):
        self.temp_dir.cleanup()

    async def test_reply_kept_after_panel_closed(self):
        app = DashboardApp(GlobalState(chat=self.chat))
        async with app.run_test() as pilot:
            await pilot.pause()
            modal = ChatModal()
            await app.push_screen(modal)
            await pilot.pause()

            modal.query_one("#input-chat", Input).value = "How much shrimp?"
            await modal.handle_send()
            await pilot.pause()
            self.assertTrue(self.chat.busy)

            # close the panel while the request is in flight
            await pilot.press("escape")
            await pilot.pause()
            self.assertIsNot(app.screen, modal)

            self.gate.set()
            chat_workers = [w for w in app.workers if w.group == "chat"]
            await app.workers.wait_for_complete(chat_workers)
            await pilot.pause()

        self.assertEqual(
            [m.role for m in self.chat.messages], ["model", "user", "model"]
        )
        self.assertEqual(self.chat.messages[-1].text, "**3,100 cartons** of shrimp.")
        self.assertFalse(self.chat.busy)


if __name__ == "__main__":
    unittest.main()
