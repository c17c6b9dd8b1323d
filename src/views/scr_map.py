from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import DataTable, Label, Static

from db.models import ShipmentStatus
from utils.pure import STATUS_COLORS, plot_routes
from utils.router import Tab
from utils.state import Snapshot
from views.base_screen import BaseScreen


def render_grid(grid) -> Text:
    text = Text(no_wrap=True)
    for row in grid:
        for char, style in row:
            text.append(char, style=style)
        text.append("\n")
    return text


def legend() -> Text:
    text = Text("o origin   ")
    text.append("X", style="#cc0000")
    text.append(" destination   ")
    for status in ShipmentStatus:
        text.append("━━ ", style=STATUS_COLORS[status])
        text.append(f"{status.value}   ")
    return text


class MapScreen(BaseScreen):
    """
    Routes of all shipments whose ports are in the port table. Shipments
    without coordinates are listed but not plotted.
    """

    TAB = Tab.MAP

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-map"):
            yield Label("Global Logistics Network", classes="page-title")
            yield Static(id="static-map")
            yield Static(legend(), id="static-legend")
            yield DataTable(id="table-routes")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.add_columns("Tracking #", "Route", "Status", "Coordinates")

    async def render_snapshot(self, snapshot: Snapshot) -> None:
        map_widget = self.query_one("#static-map", Static)
        width = max(min(map_widget.size.width or 72, 120), 36)
        height = max(width // 3, 12)
        map_widget.update(render_grid(plot_routes(snapshot.shipments, width, height)))

        table = self.query_one(DataTable)
        table.clear()
        for s in snapshot.shipments:
            if s.has_route:
                coords = (
                    f"({s.origin_lat:.2f}, {s.origin_lng:.2f}) -> "
                    f"({s.dest_lat:.2f}, {s.dest_lng:.2f})"
                )
            else:
                coords = Text("no route", style="dim")
            table.add_row(
                s.tracking_number,
                f"{s.origin} -> {s.destination}",
                Text(s.status.value, style=STATUS_COLORS[s.status]),
                coords,
                key=s.id,
            )
