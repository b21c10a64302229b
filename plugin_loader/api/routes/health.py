from __future__ import annotations

from fastapi import APIRouter

from plugin_loader import __version__

router = APIRouter()


@router.get("/health/live")
def live():
    return {"status": "ok", "version": __version__}
