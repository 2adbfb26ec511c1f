"""PDF and Excel renderings of a billing statement."""
from __future__ import annotations

import html
import io
from datetime import date
from typing import Any, List

import pandas as pd
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .config import DEFAULT_BUSINESS_NAME, DEFAULT_CURRENCY
from .models import to_utc_day
from .statement import StatementResult

SHEET_NAME = "Statement"
COLUMN_WIDTHS = (12, 20, 10, 12, 12, 12)
HEADER_GREEN = colors.Color(22 / 255, 163 / 255, 74 / 255)


def format_statement_date(value: Any) -> str:
    """Day/month/year without zero padding, e.g. ``1/2/2024``."""

    day = to_utc_day(value)
    return f"{day.day}/{day.month}/{day.year}"


def column_headers(currency: str = DEFAULT_CURRENCY) -> list[str]:
    return [
        "Date",
        "Customer",
        "Status",
        f"Total ({currency})",
        f"Paid ({currency})",
        f"Remaining ({currency})",
    ]


def summary_rows(statement: StatementResult, currency: str = DEFAULT_CURRENCY) -> list[tuple[str, str]]:
    return [
        ("Total Order Value", f"{currency} {statement.total_amount:.2f}"),
        ("Total Amount Paid", f"{currency} {statement.total_paid:.2f}"),
        ("Total Pending Amount", f"{currency} {statement.pending_amount:.2f}"),
    ]


def statement_frame(statement: StatementResult, currency: str = DEFAULT_CURRENCY) -> pd.DataFrame:
    """One row per order with numeric money columns."""

    records = [
        (
            format_statement_date(order.date),
            order.customer_name,
            order.status,
            order.total_amount,
            order.amount_paid or 0,
            round(order.total_amount - (order.amount_paid or 0), 2),
        )
        for order in statement.orders
    ]
    return pd.DataFrame(records, columns=column_headers(currency))


def build_statement_pdf(
    statement: StatementResult,
    *,
    start: date,
    end: date,
    customer_name: str,
    business_name: str = DEFAULT_BUSINESS_NAME,
    currency: str = DEFAULT_CURRENCY,
) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=14 * mm,
        rightMargin=14 * mm,
        topMargin=16 * mm,
        bottomMargin=16 * mm,
        title=f"{business_name} - Statement",
    )
    styles = getSampleStyleSheet()
    title_style = styles["Title"].clone("StatementTitle")
    title_style.alignment = 0
    title_style.fontSize = 18
    meta_style = styles["Normal"].clone("StatementMeta")
    meta_style.textColor = colors.HexColor("#646464")
    meta_style.fontSize = 11
    meta_style.leading = 15
    summary_heading = styles["Heading4"].clone("SummaryHeading")
    summary_heading.fontSize = 12
    summary_style = styles["Normal"].clone("SummaryLine")
    summary_style.fontSize = 10

    elements: List[Any] = [
        Paragraph(html.escape(f"{business_name} - Statement"), title_style),
        Paragraph(
            html.escape(f"Period: {to_utc_day(start).isoformat()} to {to_utc_day(end).isoformat()}"),
            meta_style,
        ),
        Paragraph(html.escape(f"Customer: {customer_name}"), meta_style),
        Spacer(1, 8),
    ]

    frame = statement_frame(statement, currency)
    table_data: List[List[Any]] = [list(frame.columns)]
    for row in frame.itertuples(index=False):
        table_data.append(
            [
                row[0],
                Paragraph(html.escape(str(row[1])), styles["BodyText"]),
                row[2],
                f"{row[3]:.2f}",
                f"{row[4]:.2f}",
                f"{row[5]:.2f}",
            ]
        )

    widths = [0.14, 0.28, 0.13, 0.15, 0.15, 0.15]
    orders_table = Table(table_data, colWidths=[doc.width * w for w in widths], repeatRows=1)
    orders_table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), HEADER_GREEN),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("ALIGN", (3, 1), (-1, -1), "RIGHT"),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("BOX", (0, 0), (-1, -1), 0.5, colors.grey),
                ("LEFTPADDING", (0, 0), (-1, -1), 4),
                ("RIGHTPADDING", (0, 0), (-1, -1), 4),
            ]
        )
    )
    elements.append(orders_table)
    elements.append(Spacer(1, 14))
    elements.append(Paragraph("Summary", summary_heading))
    for label, value in summary_rows(statement, currency):
        elements.append(Paragraph(html.escape(f"{label}: {value}"), summary_style))

    doc.build(elements)
    buffer.seek(0)
    return buffer.getvalue()


def build_statement_workbook(
    statement: StatementResult,
    *,
    start: date,
    end: date,
    customer_name: str,
    business_name: str = DEFAULT_BUSINESS_NAME,
    currency: str = DEFAULT_CURRENCY,
) -> bytes:
    header_rows: list[tuple[Any, ...]] = [
        (f"{business_name} - Statement",),
        (f"Period: {to_utc_day(start).isoformat()} to {to_utc_day(end).isoformat()}",),
        (f"Customer: {customer_name}",),
        (),
        ("Summary",),
        *summary_rows(statement, currency),
        (),
        ("Order Details",),
    ]
    frame = statement_frame(statement, currency)

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        # column headers land on the row right after the header block
        frame.to_excel(writer, sheet_name=SHEET_NAME, index=False, startrow=len(header_rows))
        sheet = writer.sheets[SHEET_NAME]
        for row_idx, values in enumerate(header_rows, start=1):
            for col_idx, value in enumerate(values, start=1):
                sheet.cell(row=row_idx, column=col_idx, value=value)
        for col_idx, width in enumerate(COLUMN_WIDTHS, start=1):
            sheet.column_dimensions[get_column_letter(col_idx)].width = width
    buffer.seek(0)
    return buffer.getvalue()
