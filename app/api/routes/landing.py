from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from app.core.config import settings

router = APIRouter(include_in_schema=False)

DEFAULT_STATIC_DIR = Path(__file__).resolve().parents[2] / "static"


def resolve_static_dir() -> Path:
    return Path(settings.app.static_dir) if settings.app.static_dir else DEFAULT_STATIC_DIR


@router.get("/")
def landing_page() -> FileResponse:
    """Serve the static landing page with the signup form."""

    index_file = resolve_static_dir() / "index.html"
    if not index_file.is_file():
        raise HTTPException(status_code=404, detail="Landing page not found")
    return FileResponse(index_file, media_type="text/html")
