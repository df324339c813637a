from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from oms.domain.models import STATUS_COMPLETED, ProfitSummary
from oms.repositories.contracts import ReportingRepository

log = logging.getLogger("oms.reports")


class ReportingService:
    def __init__(self, repo: ReportingRepository):
        self.repo = repo

    def monthly_profit_summary(self) -> list[ProfitSummary]:
        """Profit of completed orders bucketed by calendar month (UTC), oldest first.

        Months without completed orders are left out rather than reported as zero.
        """
        buckets: dict[tuple[int, int], Decimal] = defaultdict(Decimal)
        for created, profit in self.repo.completed_order_profits(STATUS_COMPLETED):
            created = created.astimezone(timezone.utc)
            buckets[(created.year, created.month)] += profit

        return [
            ProfitSummary(period=datetime(year, month, 1, tzinfo=timezone.utc), total_profit=total)
            for (year, month), total in sorted(buckets.items())
        ]

    def export_profit_report_excel(self, path: str) -> None:
        wb = Workbook()

        def money(cell):
            cell.number_format = "#,##0.00"

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        def add_table(ws, name: str, end_row: int, end_col: int):
            ref = f"A1:{get_column_letter(end_col)}{end_row}"
            tab = Table(displayName=name, ref=ref)
            tab.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium9",
                showRowStripes=True,
                showColumnStripes=False,
            )
            ws.add_table(tab)

        summary = self.monthly_profit_summary()
        orders = self.repo.list_orders()

        # -------- 1) Monthly Profit --------
        ws = wb.active
        ws.title = "Monthly Profit"
        ws.append(["Period", "Total Profit"])
        bold_row(ws, 1)
        for row in summary:
            ws.append([row.period.strftime("%Y-%m"), row.total_profit])
            money(ws.cell(row=ws.max_row, column=2))
        ws.freeze_panes = "A2"
        set_widths(ws, {"A": 12, "B": 18})
        if ws.max_row >= 2:
            add_table(ws, "MonthlyProfit", ws.max_row, 2)

        # -------- 2) Orders --------
        ws2 = wb.create_sheet("Orders")
        ws2.append(["Order ID", "Created (UTC)", "Status", "Items", "Total Cost", "Total Price", "Profit"])
        bold_row(ws2, 1)
        for o in orders:
            ws2.append([
                str(o.id),
                o.created_date.astimezone(timezone.utc).replace(tzinfo=None),
                o.status_name,
                o.item_count,
                o.total_cost,
                o.total_price,
                o.total_price - o.total_cost,
            ])
            r = ws2.max_row
            ws2.cell(row=r, column=2).number_format = "yyyy-mm-dd hh:mm:ss"
            for col in (5, 6, 7):
                money(ws2.cell(row=r, column=col))
        ws2.freeze_panes = "A2"
        set_widths(ws2, {"A": 38, "B": 20, "C": 14, "D": 8, "E": 14, "F": 14, "G": 14})
        if ws2.max_row >= 2:
            add_table(ws2, "OrderList", ws2.max_row, 7)

        wb.save(path)
        log.info("profit_report_exported path=%s months=%s orders=%s", path, len(summary), len(orders))
