from fastapi import APIRouter, Depends
from loguru import logger
from typing import List

from database import Database, get_database
from schemas import AdminMessageResponse, ReportCreate, ReportCreated
from utils.route_helpers import get_current_user_id

router = APIRouter(prefix="/api", tags=["reports"])


@router.post("/reports", response_model=ReportCreated)
async def create_report(
    report: ReportCreate,
    current_user_id: int = Depends(get_current_user_id),
    db: Database = Depends(get_database),
):
    result = await db.execute(
        "INSERT INTO reports (reporter_id, target_type, target_id, reason) VALUES (?, ?, ?, ?)",
        (current_user_id, report.target_type, report.target_id, report.reason),
    )
    logger.info("User {} reported {} {}", current_user_id, report.target_type, report.target_id)
    return ReportCreated(reportId=result.lastrowid)


@router.get("/admin-messages", response_model=List[AdminMessageResponse])
async def list_admin_messages(current_user_id: int = Depends(get_current_user_id), db: Database = Depends(get_database)):
    """Announcements posted by admins, visible to every logged-in user"""
    rows = await db.fetch_all(
        """
        SELECT am.id, am.admin_id, u.username AS admin_username, am.title, am.content, am.created_at
        FROM admin_messages am
        LEFT JOIN users u ON am.admin_id = u.id
        ORDER BY am.created_at DESC, am.id DESC
        """
    )
    return [AdminMessageResponse(**row) for row in rows]
