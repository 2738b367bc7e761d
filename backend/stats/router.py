# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Statistics endpoints – admin dashboard, activity-log browsing and the
activity-log Excel export.  Admin only.
"""

import io
import json
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from sqlalchemy.orm import Session

from core.schemas import ActivityLogRow, paginate
from core.security import require_admin
from database import get_db
from models.user import User
from services import statistics
from stats.schemas import ActivityResponse, DashboardResponse

router = APIRouter(prefix="/statistics", tags=["statistics"])


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    stats = statistics.dashboard(db)
    stats["recent_activity"] = [ActivityLogRow.from_row(row) for row in stats["recent_activity"]]
    return {"statistics": stats}


@router.get("/activity", response_model=ActivityResponse)
def activity(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    user_id: Optional[int] = Query(None, alias="userId"),
    action: Optional[str] = Query(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Activity-log rows newest first."""
    rows, total = statistics.activity_page(db, page, limit, user_id, action)
    return {
        "logs": [ActivityLogRow.from_row(row) for row in rows],
        "pagination": paginate(page, limit, total),
    }


# ---------------------------------------------------------------------------
# GET /statistics/activity/export  – download activity logs as Excel
# ---------------------------------------------------------------------------

_HEADER_FONT = Font(name="Calibri", size=11, bold=True, color="FFFFFF")
_HEADER_FILL = PatternFill(start_color="6C63FF", end_color="6C63FF", fill_type="solid")
_HEADER_ALIGN = Alignment(horizontal="center", vertical="center")
_THIN_BORDER = Border(
    left=Side(style="thin", color="CCCCCC"),
    right=Side(style="thin", color="CCCCCC"),
    top=Side(style="thin", color="CCCCCC"),
    bottom=Side(style="thin", color="CCCCCC"),
)

EXPORT_HEADERS = ["ID", "Time", "User", "Action", "Resource", "Resource ID", "IP Address", "Details"]
_COLUMN_WIDTHS = [8, 20, 24, 20, 18, 12, 16, 60]


@router.get("/activity/export")
def export_activity(
    user_id: Optional[int] = Query(None, alias="userId"),
    action: Optional[str] = Query(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Export the (optionally filtered) activity log as an Excel file."""
    rows = statistics.activity_query(db, user_id, action).all()

    wb = Workbook()
    ws = wb.active
    ws.title = "Activity Log"

    ws.append(EXPORT_HEADERS)
    for cell in ws[1]:
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        cell.alignment = _HEADER_ALIGN
        cell.border = _THIN_BORDER

    for row in rows:
        ws.append([
            row.id,
            row.timestamp.strftime("%Y-%m-%d %H:%M:%S") if row.timestamp else "",
            row.user.username if row.user else "",
            row.action,
            row.resource_type or "",
            row.resource_id,
            row.ip_address or "",
            json.dumps(row.details, sort_keys=True) if row.details else "",
        ])
        for cell in ws[ws.max_row]:
            cell.border = _THIN_BORDER

    for col_idx, width in enumerate(_COLUMN_WIDTHS, start=1):
        ws.column_dimensions[get_column_letter(col_idx)].width = width

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    wb.close()

    return StreamingResponse(
        buf,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": 'attachment; filename="activity-log.xlsx"'},
    )
