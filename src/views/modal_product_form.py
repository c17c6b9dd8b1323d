from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, Select

from db.models import Product, ProductCategory, ProductDraft
from utils.commands import MutationError, create_product
from views.modal_dialog import AlertModal


class ProductFormModal(ModalScreen[Optional[Product]]):
    """
    Add Product form. Returns the created product, or None if cancelled.
    On failure the form stays open with the entered values.
    """

    def compose(self) -> ComposeResult:
        defaults = ProductDraft()
        with Vertical(id="div-form"):
            yield Label("Add Product", classes="form-title")
            yield Label("Product Name")
            yield Input(placeholder="Chicken Leg Quarters", id="input-name")
            yield Label("Category")
            yield Select(
                [(c.value, c) for c in ProductCategory],
                value=defaults.category,
                allow_blank=False,
                id="select-category",
            )
            with Horizontal(classes="form-row"):
                with Vertical():
                    yield Label("Stock Level")
                    yield Input(
                        value=str(defaults.stock_level),
                        id="input-stock",
                        type="number",
                        validators=[Number(minimum=0)],
                    )
                with Vertical():
                    yield Label("Unit")
                    yield Input(value=defaults.unit, id="input-unit")
            yield Label("Location")
            yield Input(placeholder="Atlanta, US", id="input-location")
            with Horizontal(classes="form-btns"):
                yield Button("Cancel", id="btn-cancel")
                yield Button("Save Product", id="btn-submit", variant="primary")

    def on_mount(self) -> None:
        self.query_one("#input-name").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    def read_draft(self) -> ProductDraft:
        stock = self.query_one("#input-stock", Input).value.strip()
        return ProductDraft(
            name=self.query_one("#input-name", Input).value,
            category=self.query_one("#select-category", Select).value,
            stock_level=stock if stock else "",
            unit=self.query_one("#input-unit", Input).value,
            location=self.query_one("#input-location", Input).value,
        )

    def reset_form(self) -> None:
        defaults = ProductDraft()
        self.query_one("#input-name", Input).value = defaults.name
        self.query_one("#select-category", Select).value = defaults.category
        self.query_one("#input-stock", Input).value = str(defaults.stock_level)
        self.query_one("#input-unit", Input).value = defaults.unit
        self.query_one("#input-location", Input).value = defaults.location

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
            product = await create_product(self.app.state.snapshot, self.read_draft())
        except MutationError as e:
            await self.app.push_screen_wait(AlertModal(str(e)))
            return
        finally:
            btn.disabled = False
            btn.label = "Save Product"

        self.reset_form()
        self.app.notify(f"Product {product.name} added.")
        self.dismiss(product)
