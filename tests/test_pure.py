import os
import sys
import unittest
from dataclasses import replace
from datetime import date, datetime

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from db.models import Product, ProductCategory, Shipment, ShipmentStatus  # noqa: E402
from utils import pure  # noqa: E402

NOW = datetime(2024, 10, 1, 8, 0)

PRODUCTS = [
    Product("p1", "Chicken Leg Quarters", ProductCategory.POULTRY, 42000, "kg", "Atlanta, US", NOW),
    Product("p2", "Pork Bellies", ProductCategory.PORK, 18500, "kg", "Rotterdam, NL", NOW),
    Product("p3", "Chicken Wings", ProductCategory.POULTRY, 500, "kg", "Atlanta, US", NOW),
]

ROUTED = Shipment(
    "s1", "SH-2024-101", "Savannah, US", "Rotterdam, NL", ShipmentStatus.IN_TRANSIT,
    "Chicken Leg Quarters", date(2024, 11, 20), NOW, 32.0809, -81.0912, 51.9225, 4.47917,
)


class OverviewFiguresTestCase(unittest.TestCase):
    def test_overview_stats(self):
        shipments = [
            ROUTED,
            replace(ROUTED, id="s2", status=ShipmentStatus.PENDING),
            replace(ROUTED, id="s3", status=ShipmentStatus.CUSTOMS),
            replace(ROUTED, id="s4", status=ShipmentStatus.DELIVERED),
        ]
        stats = pure.overview_stats(PRODUCTS, shipments)
        self.assertEqual(stats["total_stock"], 61000)
        self.assertEqual(stats["active_shipments"], 2)
        self.assertEqual(stats["delayed_shipments"], 1)
        self.assertEqual(stats["total_value"], 45000)

    def test_empty_overview(self):
        self.assertEqual(
            pure.overview_stats([], []),
            {"total_stock": 0, "active_shipments": 0, "delayed_shipments": 0, "total_value": 0},
        )

    def test_grouping(self):
        self.assertEqual(
            pure.stock_by_category(PRODUCTS), [("Poultry", 42500), ("Pork", 18500)]
        )
        self.assertEqual(
            pure.shipments_by_status([ROUTED, ROUTED]), [("In Transit", 2)]
        )

    def test_format_quantity(self):
        self.assertEqual(pure.format_quantity(42000.0), "42,000")
        self.assertEqual(pure.format_quantity(12.5), "12.5")
        self.assertEqual(pure.format_quantity(0), "0")

    def test_bars(self):
        self.assertEqual(pure.text_bar(50, 100, width=10), "█" * 5)
        self.assertEqual(pure.text_bar(0, 100), "")
        self.assertEqual(pure.text_bar(1, 0), "")
        self.assertEqual(pure.share_percent(1, 4), "25%")
        self.assertEqual(pure.share_percent(1, 0), "0%")

    def test_markdown_table(self):
        table = pure.generate_markdown_table(["A", "B"], [[1, 2]], ["l", "r"])
        self.assertEqual(table, "| A | B |\n| :--- | ---: |\n| 1 | 2 |")
        self.assertEqual(pure.generate_markdown_table(["A"], []), "")
        with self.assertRaises(ValueError):
            pure.generate_markdown_table(["A", "B"], [[1, 2]], ["l"])


class MapPlottingTestCase(unittest.TestCase):
    def count(self, grid, char):
        return sum(1 for row in grid for c, _ in row if c == char)

    def test_projection_corners(self):
        self.assertEqual(pure.project(90, -180, 72, 24), (0, 0))
        self.assertEqual(pure.project(-90, 180, 72, 24), (71, 23))
        self.assertEqual(pure.project(0, 0, 73, 25), (36, 12))

    def test_routed_shipment_is_drawn(self):
        grid = pure.plot_routes([ROUTED], width=72, height=24)
        self.assertEqual(len(grid), 24)
        self.assertEqual(len(grid[0]), 72)
        self.assertEqual(self.count(grid, "o"), 1)
        self.assertEqual(self.count(grid, "X"), 1)
        self.assertGreater(self.count(grid, "•"), 0)

        x, y = pure.project(ROUTED.dest_lat, ROUTED.dest_lng, 72, 24)
        self.assertEqual(grid[y][x], ("X", "#cc0000"))

    def test_shipment_without_route_is_skipped(self):
        unrouted = replace(ROUTED, id="s9", origin="Atlantis", origin_lat=None, origin_lng=None)
        self.assertFalse(unrouted.has_route)
        grid = pure.plot_routes([unrouted])
        self.assertEqual(self.count(grid, "o"), 0)
        self.assertEqual(self.count(grid, "X"), 0)
        self.assertEqual(self.count(grid, "•"), 0)


if __name__ == "__main__":
    unittest.main()
