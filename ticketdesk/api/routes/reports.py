# ticketdesk/api/routes/reports.py
from fastapi import APIRouter, Depends, Query

from ..deps import DBDep, require_permission
from ticketdesk.schemas.reports import ActivityOut
from ticketdesk.services.reports import latest_report, recent_activity

router = APIRouter()

view_analytics = require_permission("can_view_analytics")


@router.get("/latest", dependencies=[Depends(view_analytics)])
async def get_latest_report(db: DBDep):
    return await latest_report(db)


@router.get("/activity", dependencies=[Depends(view_analytics)], response_model=list[ActivityOut])
async def get_recent_activity(db: DBDep, limit: int = Query(10, ge=1, le=50)):
    return await recent_activity(db, limit=limit)
