import asyncio
from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.events import ScreenResume
from textual.widgets import Button, Markdown

import api.crud as crud
from api.client import ApiError, UnauthorizedError
from api.models import ChartPoint, DashboardStats
from utils.pure import format_money, generate_markdown_table, percent_label
from views.base_screen import BaseScreen

BAR_WIDTH = 30


def _bar(value: float, peak: float) -> str:
    if peak <= 0:
        return ""
    return "█" * max(0, round(value / peak * BAR_WIDTH))


def render_dashboard(stats: DashboardStats, series: List[ChartPoint]) -> str:
    """Whole dashboard as one Markdown document."""
    cards = generate_markdown_table(
        ["Products", "Sellers", "Online Customers", "Offline Customers", "Sales", "Revenue", "Commission", "Low Stock"],
        [
            [
                stats.total_products,
                stats.total_sellers,
                stats.online_customers,
                stats.offline_customers,
                stats.total_sales,
                format_money(stats.total_revenue),
                format_money(stats.total_commission),
                stats.low_stock_products,
            ]
        ],
    )
    parts = ["## Overview", cards]

    if series:
        peak = max(p.revenue for p in series)
        parts += [
            "## Last 7 days",
            generate_markdown_table(
                ["Date", "Sales", "Revenue", ""],
                [[p.date, p.sales, format_money(p.revenue), _bar(p.revenue, peak)] for p in series],
                ["l", "r", "r", "l"],
            ),
        ]

    if stats.sales_by_category:
        # slices are shares of overall revenue, as on the pie chart
        total = stats.total_revenue
        parts += [
            "## Sales by category",
            generate_markdown_table(
                ["Category", "Revenue", "Share"],
                [
                    [
                        c.get("_id") or c.get("category") or "Uncategorized",
                        format_money(c.get("revenue") or c.get("total")),
                        percent_label(float(c.get("revenue") or c.get("total") or 0), total),
                    ]
                    for c in stats.sales_by_category
                ],
                ["l", "r", "r"],
            ),
        ]

    if stats.top_products:
        parts += [
            "## Top products",
            generate_markdown_table(
                ["Product", "Units", "Revenue"],
                [
                    [
                        p.get("name") or p.get("productName") or p.get("_id"),
                        p.get("totalQuantity") or p.get("quantity") or 0,
                        format_money(p.get("totalRevenue") or p.get("revenue")),
                    ]
                    for p in stats.top_products
                ],
                ["l", "r", "r"],
            ),
        ]

    if stats.recent_sales:
        parts += [
            "## Recent sales",
            generate_markdown_table(
                ["Product", "Customer", "Qty", "Total"],
                [
                    [
                        s.get("productName") or "-",
                        s.get("customerName") or "-",
                        s.get("quantity") or 0,
                        format_money(s.get("total")),
                    ]
                    for s in stats.recent_sales
                ],
                ["l", "l", "r", "r"],
            ),
        ]

    if stats.low_stock_items:
        parts += [
            "## Low stock",
            generate_markdown_table(
                ["Product", "Model", "Stock", "Alert at"],
                [
                    [p.get("name"), p.get("model"), p.get("stock", 0), p.get("lowStockAlert", 5)]
                    for p in stats.low_stock_items
                ],
                ["l", "l", "r", "r"],
            ),
        ]

    return "\n\n".join(parts)


class DashboardScreen(BaseScreen):
    def compose(self) -> ComposeResult:
        yield from super().compose()
        with VerticalScroll(id="div-dashboard"):
            yield Markdown("Loading...", id="md-dashboard")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")

    @on(ScreenResume)
    def handle_resume(self) -> None:
        self.reload()

    @on(Button.Pressed, "#btn-refresh")
    def handle_refresh(self) -> None:
        self.reload(refresh=True)

    def reload(self, refresh: bool = False) -> None:
        self.render_stats()

    @work(exclusive=True, group="load", exit_on_error=False)
    async def render_stats(self) -> None:
        try:
            stats, series = await asyncio.gather(crud.dashboard_stats(), crud.chart_data())
        except UnauthorizedError:
            return
        except ApiError as e:
            self.notify(e.message, severity="error")
            return
        await self.query_one("#md-dashboard", Markdown).update(render_dashboard(stats, series))
