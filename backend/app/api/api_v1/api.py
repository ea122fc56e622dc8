from __future__ import annotations

from fastapi import APIRouter

from app.api.api_v1.endpoints import admin, auth, contact, users

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(contact.router)
api_router.include_router(admin.router)
