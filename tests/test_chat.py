import os
import sys
import unittest
from datetime import date, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from db.models import (  # noqa: E402
    Product,
    ProductCategory,
    Shipment,
    ShipmentStatus,
)
from utils import chat  # noqa: E402
from utils.state import Snapshot  # noqa: E402

TODAY = date(2024, 11, 1)
NOW = datetime(2024, 10, 1, 8, 0)

SNAPSHOT = Snapshot(
    products=(
        Product("p1", "Chicken Leg Quarters", ProductCategory.POULTRY, 42000.0,
                "kg", "Atlanta, US", NOW),
    ),
    shipments=(
        Shipment("s1", "SH-2024-101", "Savannah, US", "Rotterdam, NL",
                 ShipmentStatus.IN_TRANSIT, "Chicken Leg Quarters",
                 date(2024, 11, 20), NOW),
    ),
)


def fake_client(reply=None, error=None):
    generate = AsyncMock(
        return_value=SimpleNamespace(text=reply), side_effect=error
    )
    client = SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(
        generate_content=generate
    )))
    return client, generate


class DataContextTestCase(unittest.TestCase):
    def test_lines_for_every_record(self):
        ctx = chat.build_data_context(SNAPSHOT, TODAY)
        self.assertTrue(ctx.startswith("DATE: 2024-11-01"))
        self.assertIn(
            "- Product: Chicken Leg Quarters | Category: Poultry | "
            "Stock: 42,000 kg | Location: Atlanta, US",
            ctx,
        )
        self.assertIn(
            "- Tracking ID: SH-2024-101 | Status: In Transit | "
            "Product: Chicken Leg Quarters | Route: Savannah, US -> Rotterdam, NL | "
            "ETA: 2024-11-20",
            ctx,
        )
        self.assertLess(ctx.index("LIVE INVENTORY DATA:"), ctx.index("LIVE SHIPMENT DATA:"))

    def test_empty_snapshot_placeholders(self):
        ctx = chat.build_data_context(Snapshot(), TODAY)
        self.assertIn("No products found in database.", ctx)
        self.assertIn("No active shipments found.", ctx)

    def test_system_instruction_carries_persona_and_data(self):
        instruction = chat.build_system_instruction("DATA")
        self.assertTrue(instruction.startswith(chat.PERSONA))
        self.assertTrue(instruction.endswith("Data Context:\nDATA"))


class ChatAssistantTestCase(unittest.IsolatedAsyncioTestCase):
    async def test_reply_is_appended_with_history(self):
        client, generate = fake_client(reply="**42,000 kg** in Atlanta.")
        assistant = chat.ChatAssistant("gemini-2.5-flash", lambda: client)
        self.assertEqual(assistant.messages[0].text, chat.GREETING)

        reply = await assistant.send("  How much chicken?  ", SNAPSHOT, TODAY)
        self.assertEqual(reply, chat.ChatMessage("model", "**42,000 kg** in Atlanta."))
        self.assertEqual(
            [(m.role, m.text) for m in assistant.messages],
            [
                ("model", chat.GREETING),
                ("user", "How much chicken?"),
                ("model", "**42,000 kg** in Atlanta."),
            ],
        )

        kwargs = generate.await_args.kwargs
        self.assertEqual(kwargs["model"], "gemini-2.5-flash")
        contents = kwargs["contents"]
        self.assertEqual([c.role for c in contents], ["model", "user"])
        self.assertEqual(contents[-1].parts[0].text, "How much chicken?")
        self.assertIn("SH-2024-101", kwargs["config"].system_instruction)
        self.assertFalse(assistant.busy)

    async def test_blank_text_is_not_sent(self):
        client, generate = fake_client(reply="hi")
        assistant = chat.ChatAssistant("gemini-2.5-flash", lambda: client)
        self.assertIsNone(await assistant.send("   ", SNAPSHOT))
        generate.assert_not_called()
        self.assertEqual(len(assistant.messages), 1)

    async def test_busy_assistant_ignores_input(self):
        client, generate = fake_client(reply="hi")
        assistant = chat.ChatAssistant("gemini-2.5-flash", lambda: client)
        assistant.busy = True
        self.assertIsNone(await assistant.send("hello", SNAPSHOT))
        generate.assert_not_called()

    async def test_failure_gives_fallback_reply(self):
        client, _ = fake_client(error=RuntimeError("quota exceeded"))
        assistant = chat.ChatAssistant("gemini-2.5-flash", lambda: client)
        reply = await assistant.send("hello", SNAPSHOT, TODAY)
        self.assertEqual(reply.text, chat.FALLBACK_REPLY)
        self.assertFalse(assistant.busy)

    async def test_missing_client_gives_fallback_reply(self):
        def no_key():
            raise ValueError("GEMINI_API_KEY not set in environment")

        assistant = chat.ChatAssistant("gemini-2.5-flash", no_key)
        reply = await assistant.send("hello", SNAPSHOT, TODAY)
        self.assertEqual(reply.text, chat.FALLBACK_REPLY)

    async def test_empty_reply(self):
        client, _ = fake_client(reply=None)
        assistant = chat.ChatAssistant("gemini-2.5-flash", lambda: client)
        reply = await assistant.send("hello", SNAPSHOT, TODAY)
        self.assertEqual(reply.text, chat.EMPTY_REPLY)

    async def test_model_selection(self):
        client, generate = fake_client(reply="ok")
        assistant = chat.ChatAssistant("not-a-model", lambda: client)
        self.assertEqual(assistant.model, "gemini-2.5-flash")

        assistant.select_model("gemini-3-pro-preview")
        self.assertEqual(assistant.model_name, "Gemini 3.0 Pro")
        await assistant.send("hello", SNAPSHOT, TODAY)
        self.assertEqual(generate.await_args.kwargs["model"], "gemini-3-pro-preview")

        with self.assertRaises(ValueError):
            assistant.select_model("gpt-4")


if __name__ == "__main__":
    unittest.main()
