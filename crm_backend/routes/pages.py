"""
Admin login and dashboard pages. Both are static documents; the data comes
from the JSON routes via fetch calls made in the browser.

The configured API prefix is written into each page's ``api-prefix`` meta
tag, and the page scripts build every URL from it.
"""

from __future__ import annotations

import html
from functools import lru_cache
from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from crm_backend.config import Settings, get_settings

PAGES_DIR = Path(__file__).resolve().parent.parent / "pages"
API_PREFIX_PLACEHOLDER = "__API_PREFIX__"

router = APIRouter(tags=["admin-pages"])


@lru_cache(maxsize=None)
def load_page(name: str) -> str:
    return (PAGES_DIR / name).read_text(encoding="utf-8")


def render_page(name: str, api_prefix: str) -> HTMLResponse:
    prefix = html.escape(api_prefix.rstrip("/"), quote=True)
    return HTMLResponse(load_page(name).replace(API_PREFIX_PLACEHOLDER, prefix))


@router.get("/admin/", response_class=HTMLResponse, include_in_schema=False)
def admin_login_page(settings: Settings = Depends(get_settings)):
    return render_page("login.html", settings.api_prefix)


@router.get("/admin/dashboard", response_class=HTMLResponse, include_in_schema=False)
def admin_dashboard_page(settings: Settings = Depends(get_settings)):
    return render_page("dashboard.html", settings.api_prefix)
