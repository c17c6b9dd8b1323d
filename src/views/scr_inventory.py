from typing import Optional

from rich.text import Text
from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, DataTable, Label

from db.models import Product
from utils.commands import MutationError, delete_product
from utils.pure import format_quantity
from utils.router import Tab
from utils.state import Snapshot
from views.base_screen import BaseScreen
from views.modal_dialog import AlertModal, ConfirmDeleteModal
from views.modal_product_form import ProductFormModal

COLUMNS = ["Product Name", "Category", "Location", "Stock Level", "Unit"]


class InventoryScreen(BaseScreen):
    """
    Global inventory table with add and delete.
    """

    TAB = Tab.INVENTORY

    BINDINGS = [
        Binding("n", "add_product", "Add Product", show=True),
        Binding("delete", "delete_product", "Delete", show=True),
    ]

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-inventory"):
            with Horizontal(classes="page-header"):
                yield Label("Global Inventory", classes="page-title")
                yield Button("Delete", id="btn-delete", variant="error")
                yield Button("+ Add Product", id="btn-add", variant="primary")
            yield DataTable(id="table-products")
            yield Label("No products found in inventory.", id="label-empty")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns(*COLUMNS)

    async def render_snapshot(self, snapshot: Snapshot) -> None:
        table = self.query_one(DataTable)
        cursor_row = table.cursor_row
        table.clear()
        for p in snapshot.products:
            table.add_row(
                p.name,
                Text(p.category.value, style="bold #1e6fd9"),
                p.location,
                Text(format_quantity(p.stock_level), style="bold", justify="right"),
                p.unit,
                key=p.id,
            )
        if snapshot.products:
            table.move_cursor(row=min(cursor_row, len(snapshot.products) - 1))
        self.query_one("#label-empty").display = not snapshot.products
        self.query_one("#btn-delete").disabled = not snapshot.products

    def selected_product(self) -> Optional[Product]:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        for p in self.app.state.snapshot.current.products:
            if p.id == row_key.value:
                return p
        return None

    @on(Button.Pressed, "#btn-add")
    def action_add_product(self) -> None:
        self.app.push_screen(ProductFormModal())

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True)
    async def action_delete_product(self) -> None:
        product = self.selected_product()
        if product is None:
            self.notify("Select a product first.", severity="warning")
            return

        async def confirm() -> bool:
            return await self.app.push_screen_wait(
                ConfirmDeleteModal(f"product {product.name}")
            )

        try:
            deleted = await delete_product(self.app.state.snapshot, product.id, confirm)
        except MutationError as e:
            await self.app.push_screen_wait(AlertModal(str(e)))
            return

        if deleted:
            self.notify(f"Product {product.name} deleted.")
