"""Export report data to Excel (XLSX)."""

import re
from datetime import date
from decimal import Decimal
from io import BytesIO
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from school_portal.shared.utils.dates import format_date_manila
from school_portal.shared.utils.money import parse_amount, round_money

PAYMENT_LOG_COLUMNS = [
    ("Invoice ID", 12),
    ("Invoice Description", 30),
    ("Student Name", 25),
    ("Student Email", 30),
    ("Payment Method", 18),
    ("Payment Type", 18),
    ("Amount (₱)", 15),
    ("Status", 12),
    ("Issue Date", 15),
    ("Reference Number", 20),
    ("Remarks", 30),
]


def _cell_value(v: Any) -> Any:
    """Convert value for Excel (Decimal -> float, date stays)."""
    if v is None:
        return None
    if isinstance(v, Decimal):
        return float(v)
    return v


def _write_table(ws: Any, rows: list[list[Any]], start_row: int = 1) -> None:
    """Write list of rows to sheet starting at start_row."""
    for i, row in enumerate(rows, start=start_row):
        for j, val in enumerate(row, start=1):
            ws.cell(row=i, column=j, value=_cell_value(val))


def payment_log_row(payment: dict[str, Any]) -> list[Any]:
    amount = parse_amount(payment.get("payable_amount"))
    return [
        f"INV-{payment['invoice_id']}" if payment.get("invoice_id") else "-",
        payment.get("invoice_description") or "-",
        payment.get("student_name") or "N/A",
        payment.get("student_email") or "-",
        payment.get("payment_method") or "-",
        payment.get("payment_type") or "-",
        f"{round_money(amount):.2f}" if amount else "0.00",
        payment.get("status") or "N/A",
        format_date_manila(payment.get("issue_date")) if payment.get("issue_date") else "-",
        payment.get("reference_number") or "-",
        payment.get("remarks") or "-",
    ]


def payment_logs_filename(branch_name: str, on: date) -> str:
    safe = re.sub(r"[^a-zA-Z0-9]", "_", branch_name)
    return f"Payment_Logs_{safe}_{on.isoformat()}.xlsx"


def export_payment_logs(payments: list[dict[str, Any]]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Payment Logs"
    _write_table(ws, [[title for title, _ in PAYMENT_LOG_COLUMNS]], 1)
    for c, (_, width) in enumerate(PAYMENT_LOG_COLUMNS, start=1):
        ws.cell(1, c).font = Font(bold=True)
        ws.column_dimensions[get_column_letter(c)].width = width
    _write_table(ws, [payment_log_row(p) for p in payments], 2)
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()
