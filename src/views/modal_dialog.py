from typing import Dict, Literal, Tuple

from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Label

from utils.messages import QuitRequestedMessage

Tone = Literal["default", "positive", "warning", "error"]
Variant = Literal["primary", "default", "success", "warning", "error"]

# (confirm button, cancel button)
TONE_VARIANTS: Dict[str, Tuple[Variant, Variant]] = {
    "default": ("primary", "default"),
    "positive": ("success", "default"),
    "warning": ("warning", "default"),
    "error": ("error", "primary"),
}


class DialogModal(ModalScreen[bool]):
    """
    Caption plus one or two buttons. Resolves to True when the confirm
    button is pressed, False on cancel or escape.
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel", show=False)]

    def __init__(
        self,
        caption: str,
        primary_text: str = "OK",
        secondary_text: str = "",
        tone: Tone = "default",
    ):
        super().__init__()
        self.caption = caption
        self.primary_text = primary_text
        self.secondary_text = secondary_text
        self.tone = tone

    def compose(self) -> ComposeResult:
        confirm_variant, cancel_variant = TONE_VARIANTS[self.tone]
        with Container(id="div-dialog", classes=f"tone-{self.tone}"):
            yield Label(self.caption, id="caption")
            with Horizontal(id="dialog"):
                if self.secondary_text:
                    yield Button(
                        self.secondary_text, variant=cancel_variant, id="btn-secondary"
                    )
                yield Button(self.primary_text, variant=confirm_variant, id="btn-primary")

    def on_mount(self):
        # destructive dialogs start on the safe button
        safe = self.secondary_text and self.tone == "error"
        self.query_one("#btn-secondary" if safe else "#btn-primary").focus()

    def action_cancel(self) -> None:
        self.dismiss(False)

    def confirm(self) -> None:
        self.dismiss(True)

    @on(Button.Pressed, "#btn-primary")
    def handle_confirm(self) -> None:
        self.confirm()

    @on(Button.Pressed, "#btn-secondary")
    def handle_cancel(self) -> None:
        self.dismiss(False)


class SimpleDialogModal(DialogModal):
    def __init__(self, caption: str):
        super().__init__(caption)


class AlertModal(DialogModal):
    """Blocking alert for a failed write."""

    def __init__(self, caption: str):
        super().__init__(caption, primary_text="OK", tone="error")


class ConfirmDeleteModal(DialogModal):
    def __init__(self, what: str):
        super().__init__(
            f"Are you sure you want to delete {what}? This cannot be undone.",
            primary_text="Delete",
            secondary_text="Cancel",
            tone="error",
        )


class QuitDialogModal(DialogModal):
    def __init__(self):
        super().__init__("Are you sure you want to quit?", "Yes", "No", "error")

    def confirm(self) -> None:
        self.app.post_message(QuitRequestedMessage())
        super().confirm()
