"""Current admin user."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from mission_control.api.middleware.user_auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/api/me", tags=["auth"])


@router.get("")
async def current_user(user: AuthenticatedUser = Depends(get_current_user)) -> dict[str, str]:
    return {"id": user.id, "email": user.email}
