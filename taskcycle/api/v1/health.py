from fastapi import APIRouter

from taskcycle.core import settings
from taskcycle.engine import dates

router = APIRouter()


@router.get("", tags=["health"])
def health():
    """Health check endpoint."""
    return {"status": "ok", "today": dates.format_date(dates.today()), "timezone": settings.timezone}
