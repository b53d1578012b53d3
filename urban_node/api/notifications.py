"""
urban_node/api/notifications.py
-------------------------------
Current transient status notice (pending / success / error).
"""

from fastapi import APIRouter, Depends

from .proposals import get_runtime
from ..shared_runtime import UrbanRuntime

router = APIRouter(tags=["notifications"])


@router.get("/notifications/current")
def current_notice(rt: UrbanRuntime = Depends(get_runtime)):
    notice = rt.notices.current()
    if notice is None:
        return {"ok": True, "notice": None}
    return {
        "ok": True,
        "notice": {
            "status": notice.status,
            "message": notice.message,
            "expires_at": notice.expires_at,
        },
    }
