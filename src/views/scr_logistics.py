from typing import Optional

from rich.text import Text
from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, DataTable, Label

from db.models import Shipment
from utils.commands import MutationError, delete_shipment
from utils.pure import STATUS_COLORS
from utils.router import Tab
from utils.state import Snapshot
from views.base_screen import BaseScreen
from views.modal_dialog import AlertModal, ConfirmDeleteModal
from views.modal_shipment_form import ShipmentFormModal

COLUMNS = ["Tracking #", "Origin", "Destination", "Product", "Status", "ETA"]


class LogisticsScreen(BaseScreen):
    """
    Shipment tracking table with create and delete.
    """

    TAB = Tab.LOGISTICS

    BINDINGS = [
        Binding("n", "create_shipment", "Create Shipment", show=True),
        Binding("delete", "delete_shipment", "Delete", show=True),
    ]

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-logistics"):
            with Horizontal(classes="page-header"):
                yield Label("Shipment Tracking", classes="page-title")
                yield Button("Delete", id="btn-delete", variant="error")
                yield Button("+ Create Shipment", id="btn-add", variant="primary")
            yield DataTable(id="table-shipments")
            yield Label("No shipments found.", id="label-empty")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns(*COLUMNS)

    async def render_snapshot(self, snapshot: Snapshot) -> None:
        table = self.query_one(DataTable)
        cursor_row = table.cursor_row
        table.clear()
        for s in snapshot.shipments:
            table.add_row(
                Text(s.tracking_number, style="italic"),
                s.origin,
                s.destination,
                Text(s.product_name, style="bold"),
                Text(f" {s.status.value} ", style=f"bold {STATUS_COLORS[s.status]}"),
                s.eta.strftime("%m/%d/%Y"),
                key=s.id,
            )
        if snapshot.shipments:
            table.move_cursor(row=min(cursor_row, len(snapshot.shipments) - 1))
        self.query_one("#label-empty").display = not snapshot.shipments
        self.query_one("#btn-delete").disabled = not snapshot.shipments

    def selected_shipment(self) -> Optional[Shipment]:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        for s in self.app.state.snapshot.current.shipments:
            if s.id == row_key.value:
                return s
        return None

    @on(Button.Pressed, "#btn-add")
    def action_create_shipment(self) -> None:
        self.app.push_screen(ShipmentFormModal())

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True)
    async def action_delete_shipment(self) -> None:
        shipment = self.selected_shipment()
        if shipment is None:
            self.notify("Select a shipment first.", severity="warning")
            return

        async def confirm() -> bool:
            return await self.app.push_screen_wait(
                ConfirmDeleteModal(f"shipment {shipment.tracking_number}")
            )

        try:
            deleted = await delete_shipment(
                self.app.state.snapshot, shipment.id, confirm
            )
        except MutationError as e:
            await self.app.push_screen_wait(AlertModal(str(e)))
            return

        if deleted:
            self.notify(f"Shipment {shipment.tracking_number} deleted.")
