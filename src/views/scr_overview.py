from textual.app import ComposeResult
from textual.containers import Grid, Horizontal, Vertical, VerticalScroll
from textual.widgets import Label, Markdown, Static

from db.models import ShipmentStatus
from utils.pure import (
    STATUS_COLORS,
    format_quantity,
    generate_markdown_table,
    overview_stats,
    share_percent,
    shipments_by_status,
    stock_by_category,
    text_bar,
)
from utils.router import Tab
from utils.state import Snapshot
from views.base_screen import BaseScreen


class KpiCard(Vertical):
    def __init__(self, caption: str, card_id: str) -> None:
        super().__init__(id=card_id, classes="kpi-card")
        self.caption = caption

    def compose(self) -> ComposeResult:
        yield Label(self.caption, classes="kpi-caption")
        yield Label("-", classes="kpi-value")

    def set_value(self, value: str) -> None:
        self.query_one(".kpi-value", Label).update(value)


class OverviewScreen(BaseScreen):
    """
    Dashboard: KPI cards, stock per category and shipments per status.
    """

    TAB = Tab.OVERVIEW

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with VerticalScroll(id="vertscroll-overview"):
            with Grid(id="grid-kpi"):
                yield KpiCard("Total Stock (Units)", "kpi-total-stock")
                yield KpiCard("Active Shipments", "kpi-active")
                yield KpiCard("Delayed / Customs", "kpi-delayed")
                yield KpiCard("Est. Inventory Value", "kpi-value")
            with Horizontal(id="hort-charts"):
                with Vertical(classes="chart"):
                    yield Label("Stock by Category", classes="chart-title")
                    yield Static(id="chart-category")
                with Vertical(classes="chart"):
                    yield Label("Shipment Status", classes="chart-title")
                    yield Static(id="chart-status")
            yield Markdown("", id="md-recent")

    async def render_snapshot(self, snapshot: Snapshot) -> None:
        stats = overview_stats(snapshot.products, snapshot.shipments)
        self.query_one("#kpi-total-stock", KpiCard).set_value(
            format_quantity(stats["total_stock"])
        )
        self.query_one("#kpi-active", KpiCard).set_value(str(stats["active_shipments"]))
        self.query_one("#kpi-delayed", KpiCard).set_value(
            str(stats["delayed_shipments"])
        )
        self.query_one("#kpi-value", KpiCard).set_value(
            f"${stats['total_value'] / 1_000_000:.1f}M"
        )

        # bar chart
        categories = stock_by_category(snapshot.products)
        top = max((v for _, v in categories), default=0)
        if categories:
            lines = [
                f"{name:<11} [#0088FE]{text_bar(value, top)}[/] {format_quantity(value)}"
                for name, value in categories
            ]
        else:
            lines = ["[dim]No products found in inventory.[/]"]
        self.query_one("#chart-category", Static).update("\n".join(lines))

        # share chart
        statuses = shipments_by_status(snapshot.shipments)
        total = sum(count for _, count in statuses)
        if statuses:
            lines = []
            for name, count in statuses:
                color = STATUS_COLORS[ShipmentStatus(name)]
                lines.append(
                    f"{name:<11} [{color}]{text_bar(count, total, 20)}[/] "
                    f"{count} ({share_percent(count, total)})"
                )
        else:
            lines = ["[dim]No shipments found.[/]"]
        self.query_one("#chart-status", Static).update("\n".join(lines))

        recent = sorted(snapshot.shipments, key=lambda s: s.eta)[:5]
        if recent:
            rows = [
                [s.tracking_number, s.product_name, s.status.value, s.eta.isoformat()]
                for s in recent
            ]
            md = "### Upcoming Arrivals\n\n" + generate_markdown_table(
                ["Tracking #", "Product", "Status", "ETA"], rows, ["l", "l", "c", "r"]
            )
        else:
            md = ""
        await self.query_one("#md-recent", Markdown).update(md)
