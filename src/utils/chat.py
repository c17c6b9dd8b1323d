"""Chat assistant backed by the Google Gen AI SDK (google-genai).

Every question is sent together with the whole current snapshot, serialized
as plain text lines inside the system instruction. No size cap is applied to
that context, so it grows with the number of products and shipments.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from typing import TYPE_CHECKING, Callable, Dict, List, Literal, Optional

from google import genai
from google.genai import types

from utils.config import get_settings
from utils.logger import get_logger
from utils.pure import format_quantity

if TYPE_CHECKING:
    from utils.state import Snapshot

_logger = get_logger(__name__)

AVAILABLE_MODELS: Dict[str, str] = {
    "gemini-2.5-flash": "Gemini 2.5 Flash",
    "gemini-3-pro-preview": "Gemini 3.0 Pro",
}

GREETING = (
    "Hello! I am AJC-Bot. I have access to the live logistics database. "
    "How can I assist you with stock levels or shipment tracking today?"
)
FALLBACK_REPLY = (
    "I'm having trouble connecting to the AJC knowledge base right now. "
    "Please try again later."
)
EMPTY_REPLY = "I apologize, I could not generate a response."

PERSONA = """\
You are AJC-Bot, a specialized AI assistant for AJC International.
AJC is a global leader in marketing frozen foods (poultry, pork, beef, seafood, vegetables, fries) and logistics.

**CRITICAL: Use the provided "LIVE INVENTORY DATA" and "LIVE SHIPMENT DATA" below to answer specific questions.**
If a user asks about stock, look at the inventory data. If they ask about a shipment, look at the shipment data.
If the data is not in the context provided, politely say you don't have that information.

Key Business Context:
- Connecting agricultural producers with global markets.
- AJC Logistics provides transport solutions.

Directives:
1. **Formatting**: You MUST use Markdown for all responses. Use bolding (**text**) for key terms, bullet points for lists.
2. **Language**: Detect the language of the user's message. If they speak Spanish, reply in Spanish. If English, reply in English.
3. **Tone**: Professional, efficient, helpful.
"""


@dataclass(frozen=True)
class ChatMessage:
    role: Literal["user", "model"]
    text: str


def build_data_context(snapshot: "Snapshot", today: Optional[date] = None) -> str:
    today = today or date.today()

    if snapshot.products:
        inventory = "\n".join(
            f"- Product: {p.name} | Category: {p.category.value} | "
            f"Stock: {format_quantity(p.stock_level)} {p.unit} | Location: {p.location}"
            for p in snapshot.products
        )
    else:
        inventory = "No products found in database."

    if snapshot.shipments:
        shipments = "\n".join(
            f"- Tracking ID: {s.tracking_number} | Status: {s.status.value} | "
            f"Product: {s.product_name} | Route: {s.origin} -> {s.destination} | "
            f"ETA: {s.eta.isoformat()}"
            for s in snapshot.shipments
        )
    else:
        shipments = "No active shipments found."

    return (
        f"DATE: {today.isoformat()}\n\n"
        f"LIVE INVENTORY DATA:\n{inventory}\n\n"
        f"LIVE SHIPMENT DATA:\n{shipments}\n"
    )


def build_system_instruction(data_context: str) -> str:
    return f"{PERSONA}\nData Context:\n{data_context}"


@lru_cache(maxsize=1)
def get_genai_client() -> genai.Client:
    """Create (and cache) a GenAI client for the Gemini Developer API."""
    settings = get_settings()
    if not settings.gemini_api_key:
        raise ValueError("GEMINI_API_KEY not set in environment")
    return genai.Client(api_key=settings.gemini_api_key)


class ChatAssistant:
    """
    Holds one conversation. send() is a no-op while a previous request is
    still in flight, there is no retry and no cancellation.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        client_factory: Callable[[], genai.Client] = get_genai_client,
    ) -> None:
        self.model = model or get_settings().chat_model
        if self.model not in AVAILABLE_MODELS:
            _logger.warning(f"Unknown chat model {self.model}, using default")
            self.model = next(iter(AVAILABLE_MODELS))
        self.messages: List[ChatMessage] = [ChatMessage("model", GREETING)]
        self.busy = False
        self._client_factory = client_factory

    @property
    def model_name(self) -> str:
        return AVAILABLE_MODELS[self.model]

    def select_model(self, model: str) -> None:
        if model not in AVAILABLE_MODELS:
            raise ValueError(f"Unknown model: {model}")
        self.model = model

    def build_contents(self, text: str) -> List[types.Content]:
        """Full prior conversation followed by the new user message."""
        history = [
            types.Content(role=m.role, parts=[types.Part(text=m.text)])
            for m in self.messages
        ]
        history.append(types.Content(role="user", parts=[types.Part(text=text)]))
        return history

    async def send(
        self, text: str, snapshot: "Snapshot", today: Optional[date] = None
    ) -> Optional[ChatMessage]:
        """
        Ask the model. Returns the reply that was appended to the
        conversation, or None if nothing was sent.
        """
        text = (text or "").strip()
        if not text or self.busy:
            return None

        instruction = build_system_instruction(build_data_context(snapshot, today))
        contents = self.build_contents(text)
        self.messages.append(ChatMessage("user", text))
        self.busy = True
        try:
            client = self._client_factory()
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=types.GenerateContentConfig(system_instruction=instruction),
            )
            reply = ChatMessage("model", response.text or EMPTY_REPLY)
        except Exception as e:
            _logger.error(f"Gemini Error: {e}")
            reply = ChatMessage("model", FALLBACK_REPLY)
        finally:
            self.busy = False

        self.messages.append(reply)
        return reply
