from typing import Optional

from textual import events, on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Markdown, Select, Static

from utils.chat import AVAILABLE_MODELS, ChatMessage
from utils.messages import ChatRepliedMessage


class ChatModal(ModalScreen[None]):
    """
    AJC-Bot panel. The conversation lives in app state, so closing and
    reopening the panel keeps it.
    """

    def compose(self) -> ComposeResult:
        chat = self.app.state.chat
        with Vertical(id="div-chat"):
            with Horizontal(id="div-chat-header"):
                yield Label("AJC-Bot Assistant", id="label-chat-title")
                yield Label("Online", id="label-chat-status")
                yield Select(
                    [(name, model_id) for model_id, name in AVAILABLE_MODELS.items()],
                    value=chat.model,
                    allow_blank=False,
                    id="select-model",
                )
                yield Button("Close", id="btn-close")
            yield VerticalScroll(id="vertscroll-messages")
            with Horizontal(id="div-chat-input"):
                yield Input(placeholder="Ask about AJC Logistics...", id="input-chat")
                yield Button("Send", id="btn-send", variant="primary")

    async def on_mount(self) -> None:
        await self.render_messages()
        self.set_busy(self.app.state.chat.busy)
        self.query_one("#input-chat").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    def set_busy(self, busy: bool) -> None:
        self.query_one("#label-chat-status", Label).update(
            "Thinking..." if busy else "Online"
        )
        self.query_one("#input-chat", Input).disabled = busy
        self.query_one("#btn-send", Button).disabled = busy

    async def render_messages(self, pending: Optional[str] = None) -> None:
        messages = list(self.app.state.chat.messages)
        if pending:
            messages.append(ChatMessage("user", pending))

        container = self.query_one("#vertscroll-messages", VerticalScroll)
        await container.remove_children()
        bubbles = []
        for msg in messages:
            if msg.role == "user":
                bubbles.append(Static(msg.text, classes="bubble bubble-user"))
            else:
                bubbles.append(Markdown(msg.text, classes="bubble bubble-model"))
        await container.mount_all(bubbles)
        container.scroll_end(animate=False)

    @on(Select.Changed, "#select-model")
    def handle_model_changed(self, event: Select.Changed) -> None:
        if event.value != Select.BLANK:
            self.app.state.chat.select_model(event.value)

    @on(Button.Pressed, "#btn-close")
    def handle_close(self) -> None:
        self.dismiss(None)

    @on(Input.Submitted, "#input-chat")
    @on(Button.Pressed, "#btn-send")
    async def handle_send(self) -> None:
        chat_input = self.query_one("#input-chat", Input)
        text = chat_input.value.strip()
        if not text or self.app.state.chat.busy:
            return

        chat_input.value = ""
        self.set_busy(True)
        await self.render_messages(pending=text)
        # the request belongs to the app, closing this panel does not stop it
        self.app.ask_assistant(text)

    @on(ChatRepliedMessage)
    async def handle_replied(self) -> None:
        self.set_busy(False)
        await self.render_messages()
        self.query_one("#input-chat", Input).focus()
