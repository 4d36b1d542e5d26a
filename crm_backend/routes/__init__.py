"""
HTTP routes for the CRM API.
"""

from fastapi import APIRouter

from crm_backend.routes import admin, auth, calls, contacts, pages, sync

router = APIRouter()
router.include_router(auth.router)
router.include_router(contacts.router)
router.include_router(calls.router)
router.include_router(sync.router)
router.include_router(admin.router)
router.include_router(pages.router)
