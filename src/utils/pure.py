from collections import Counter
from typing import Dict, Iterable, List, Literal, Optional, Sequence, Tuple

from db.models import Product, Shipment, ShipmentStatus

STATUS_COLORS: Dict[ShipmentStatus, str] = {
    ShipmentStatus.IN_TRANSIT: "#1e6fd9",
    ShipmentStatus.CUSTOMS: "#eab308",
    ShipmentStatus.PENDING: "#9ca3af",
    ShipmentStatus.DELIVERED: "#22c55e",
}

# placeholder valuation per product line, as shown on the overview
ESTIMATED_VALUE_PER_PRODUCT = 15000


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of strings.
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all center ('c').

    Returns:
        str: Markdown formatted table.
    """
    if not rows:
        return ""

    # If no headers, take the first row as header and remove it from rows
    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = list(map(str, headers))
    rows = [list(map(str, row)) for row in rows]

    num_cols = len(headers)
    if aligns is None:
        aligns = ["c"] * num_cols
    elif len(aligns) != num_cols:
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {
        "l": ":---",
        "c": ":---:",
        "r": "---:",
    }

    header_line = "| " + " | ".join(headers) + " |"
    align_line = "| " + " | ".join(align_map[a] for a in aligns) + " |"
    row_lines = ["| " + " | ".join(row) + " |" for row in rows]

    return "\n".join([header_line, align_line, *row_lines])


def format_quantity(value: float) -> str:
    """42000.0 -> '42,000', 12.5 -> '12.5'"""
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,}"


# ---------------------------
# Overview figures
# ---------------------------


def stock_by_category(products: Iterable[Product]) -> List[Tuple[str, float]]:
    """Total stock per category, in first-seen order."""
    totals: Dict[str, float] = {}
    for p in products:
        totals[p.category.value] = totals.get(p.category.value, 0) + p.stock_level
    return list(totals.items())


def shipments_by_status(shipments: Iterable[Shipment]) -> List[Tuple[str, int]]:
    counts = Counter(s.status.value for s in shipments)
    return list(counts.items())


def overview_stats(
    products: Sequence[Product], shipments: Sequence[Shipment]
) -> Dict[str, float]:
    return {
        "total_stock": sum(p.stock_level for p in products),
        "active_shipments": sum(
            1
            for s in shipments
            if s.status in (ShipmentStatus.IN_TRANSIT, ShipmentStatus.PENDING)
        ),
        "delayed_shipments": sum(
            1 for s in shipments if s.status == ShipmentStatus.CUSTOMS
        ),
        "total_value": len(products) * ESTIMATED_VALUE_PER_PRODUCT,
    }


def text_bar(value: float, max_value: float, width: int = 30) -> str:
    if max_value <= 0 or value <= 0:
        return ""
    filled = max(1, round(value / max_value * width))
    return "█" * min(filled, width)


def share_percent(value: float, total: float) -> str:
    if total <= 0:
        return "0%"
    return f"{value / total * 100:.0f}%"


# ---------------------------
# Map plotting
# ---------------------------

Cell = Tuple[str, Optional[str]]


def project(lat: float, lng: float, width: int, height: int) -> Tuple[int, int]:
    """Equirectangular projection of a coordinate onto a width x height grid."""
    x = round((lng + 180) / 360 * (width - 1))
    y = round((90 - lat) / 180 * (height - 1))
    return min(max(x, 0), width - 1), min(max(y, 0), height - 1)


def plot_routes(
    shipments: Iterable[Shipment], width: int = 72, height: int = 24
) -> List[List[Cell]]:
    """
    Character grid with one line per routable shipment. Origins are drawn
    as 'o', destinations as 'X', pending routes are dashed. Shipments
    without coordinates are skipped.
    """
    grid: List[List[Cell]] = [[(" ", None)] * width for _ in range(height)]

    # graticule every 30 degrees
    for lat in range(-60, 90, 30):
        _, y = project(lat, 0, width, height)
        for x in range(0, width, 2):
            grid[y][x] = ("·", "#374151")

    markers: List[Tuple[int, int, Cell]] = []
    for s in shipments:
        if not s.has_route:
            continue
        color = STATUS_COLORS.get(s.status)
        x0, y0 = project(s.origin_lat, s.origin_lng, width, height)
        x1, y1 = project(s.dest_lat, s.dest_lng, width, height)
        steps = max(abs(x1 - x0), abs(y1 - y0), 1)
        for i in range(1, steps):
            if s.status == ShipmentStatus.PENDING and i % 2:
                continue
            x = round(x0 + (x1 - x0) * i / steps)
            y = round(y0 + (y1 - y0) * i / steps)
            grid[y][x] = ("•", color)
        markers.append((x0, y0, ("o", "#64748b")))
        markers.append((x1, y1, ("X", "#cc0000")))

    # markers go on top of every line
    for x, y, cell in markers:
        grid[y][x] = cell
    return grid
