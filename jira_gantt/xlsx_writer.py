from __future__ import annotations

import io
import re
from typing import List

from openpyxl import Workbook
from openpyxl.styles import PatternFill, Font, Alignment
from openpyxl.utils import get_column_letter

from .aggregator import Group
from .output_schema import task_label

XLSX_HEADERS: List[str] = ["Key", "Label", "Status", "Start", "End", "Days", "Complete"]


def render_workbook(groups: List[Group], title: str = "") -> bytes:
    """Render the schedule as XLSX bytes in a grouped layout:
    - Grey merged row per group with assignee and task count
    - Repeated header row per group
    - One row per task; closed tasks get a green fill
    """
    wb = Workbook()
    ws = wb.active
    # Sheet titles are capped at 31 chars and cannot hold []:*?/ or backslash
    ws.title = re.sub(r"[\[\]:*?/\\]", "", title or "")[:31] or "Schedule"

    BLUE = "FF366092"   # header row
    GREY = "FF4D4D4D"   # merged group row
    GREEN = "FFC6EFCE"  # closed task row

    header_font = Font(color="FFFFFF", bold=True)
    italic_white = Font(color="FFFFFFFF", italic=True)
    done_fill = PatternFill(fill_type="solid", fgColor=GREEN)

    headers = XLSX_HEADERS
    current_row = 1
    for group in groups:
        # 1) Grey merged row across the full header width
        text = f"--- {group.name} - {len(group.tasks)} tasks ---"
        ws.cell(row=current_row, column=1).value = text
        ws.merge_cells(start_row=current_row, start_column=1, end_row=current_row, end_column=len(headers))
        mc = ws.cell(row=current_row, column=1)
        mc.fill = PatternFill(fill_type="solid", fgColor=GREY)
        mc.font = italic_white
        mc.alignment = Alignment(horizontal="center")
        current_row += 1

        # 2) Header row
        ws.append(headers)
        for idx in range(1, len(headers) + 1):
            cell = ws.cell(row=current_row, column=idx)
            cell.fill = PatternFill(fill_type="solid", fgColor=BLUE)
            cell.font = header_font
            cell.alignment = Alignment(horizontal="center")
        current_row += 1

        # 3) Task rows in schedule order
        for t in group.tasks:
            ws.append([
                t.key,
                task_label(t.key, t.record.summary),
                t.record.status,
                t.start,
                t.end,
                t.days,
                "Yes" if t.closed else "No",
            ])
            for col in (headers.index("Start") + 1, headers.index("End") + 1):
                ws.cell(row=current_row, column=col).number_format = "yyyy-mm-dd"
            if t.closed:
                for idx in range(1, len(headers) + 1):
                    ws.cell(row=current_row, column=idx).fill = done_fill
            current_row += 1

    widths = [12, 48, 14, 12, 12, 8, 10]
    for idx, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = width

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
