from datetime import date
from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.validation import Function
from textual.widgets import Button, Input, Label, Select

from db.models import Shipment, ShipmentDraft, ShipmentStatus
from utils.commands import MutationError, create_shipment
from utils.ports import PORT_COORDINATES
from views.modal_dialog import AlertModal


def _is_iso_date(value: str) -> bool:
    try:
        date.fromisoformat(value.strip())
    except ValueError:
        return False
    return True


class ShipmentFormModal(ModalScreen[Optional[Shipment]]):
    """
    Create Shipment form. Origin and destination are free text; names found
    in the port table get coordinates and show up on the map.
    """

    def compose(self) -> ComposeResult:
        defaults = ShipmentDraft()
        known_ports = ", ".join(list(PORT_COORDINATES)[:3])
        with Vertical(id="div-form"):
            yield Label("Create Shipment", classes="form-title")
            yield Label("Tracking Number")
            yield Input(placeholder="SH-2024-001", id="input-tracking")
            with Horizontal(classes="form-row"):
                with Vertical():
                    yield Label("Origin")
                    yield Input(placeholder="Atlanta, US", id="input-origin")
                with Vertical():
                    yield Label("Destination")
                    yield Input(placeholder="Rotterdam, NL", id="input-destination")
            yield Label(f"Known ports: {known_ports}, ...", classes="form-hint")
            yield Label("Product")
            yield Input(placeholder="Chicken Leg Quarters", id="input-product")
            with Horizontal(classes="form-row"):
                with Vertical():
                    yield Label("Status")
                    yield Select(
                        [(s.value, s) for s in ShipmentStatus],
                        value=defaults.status,
                        allow_blank=False,
                        id="select-status",
                    )
                with Vertical():
                    yield Label("ETA")
                    yield Input(
                        placeholder="YYYY-MM-DD",
                        id="input-eta",
                        validators=[Function(_is_iso_date, "Not a date")],
                    )
            with Horizontal(classes="form-btns"):
                yield Button("Cancel", id="btn-cancel")
                yield Button("Create Shipment", id="btn-submit", variant="primary")

    def on_mount(self) -> None:
        self.query_one("#input-tracking").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    def read_draft(self) -> ShipmentDraft:
        return ShipmentDraft(
            tracking_number=self.query_one("#input-tracking", Input).value,
            origin=self.query_one("#input-origin", Input).value,
            destination=self.query_one("#input-destination", Input).value,
            status=self.query_one("#select-status", Select).value,
            product_name=self.query_one("#input-product", Input).value,
            eta=self.query_one("#input-eta", Input).value,
        )

    def reset_form(self) -> None:
        defaults = ShipmentDraft()
        for input_id in (
            "#input-tracking",
            "#input-origin",
            "#input-destination",
            "#input-product",
            "#input-eta",
        ):
            self.query_one(input_id, Input).value = ""
        self.query_one("#select-status", Select).value = defaults.status

    @on(Button.Pressed, "#btn-cancel")
    def handle_cancel(self) -> None:
        self.dismiss(None)

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self) -> None:
        btn = self.query_one("#btn-submit", Button)
        btn.disabled = True
        btn.label = "Saving..."
        try:
            shipment = await create_shipment(
                self.app.state.snapshot, self.read_draft()
            )
        except MutationError as e:
            await self.app.push_screen_wait(AlertModal(str(e)))
            return
        finally:
            btn.disabled = False
            btn.label = "Create Shipment"

        self.reset_form()
        if not shipment.has_route:
            self.app.notify(
                f"{shipment.tracking_number}: route not on the map (unknown port).",
                severity="warning",
            )
        self.app.notify(f"Shipment {shipment.tracking_number} created.")
        self.dismiss(shipment)
