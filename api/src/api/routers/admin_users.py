"""Admin user management and site statistics."""
from __future__ import annotations
import logging
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from phoneverse.models import User, UserSession
from phoneverse.models.user import ROLE_ADMIN, ROLE_USER, STATUS_ACTIVE, STATUS_SUSPENDED
from phoneverse.services.article_repository import ArticleRepository
from api.dependencies import get_db, get_repository, require_admin
from api.services.auth_service import user_payload

logger = logging.getLogger(__name__)
router = APIRouter()

class StatusUpdateRequest(BaseModel):
    status: str

class RoleUpdateRequest(BaseModel):
    role: str

async def _get_user_or_404(db: AsyncSession, user_id: UUID) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user

@router.get("/users")
async def list_users(
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    result = await db.execute(
        select(User).order_by(User.created_at.desc()).limit(limit).offset(offset)
    )
    return [user_payload(u) for u in result.scalars().all()]

@router.get("/users/{user_id}")
async def get_user(user_id: UUID, db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    return user_payload(await _get_user_or_404(db, user_id))

@router.put("/users/{user_id}/status")
async def update_user_status(
    user_id: UUID,
    req: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    if req.status not in (STATUS_ACTIVE, STATUS_SUSPENDED):
        raise HTTPException(status_code=400, detail="Invalid status")
    if user_id == admin.id and req.status != STATUS_ACTIVE:
        raise HTTPException(status_code=400, detail="You cannot suspend your own account")
    user = await _get_user_or_404(db, user_id)
    user.status = req.status
    if req.status == STATUS_SUSPENDED:
        await db.execute(delete(UserSession).where(UserSession.user_id == user.id))
    await db.flush()
    logger.info("Admin %s set user %s status=%s", admin.username, user.username, req.status)
    return {"success": True, "user": user_payload(user)}

@router.put("/users/{user_id}/role")
async def update_user_role(
    user_id: UUID,
    req: RoleUpdateRequest,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    if req.role not in (ROLE_USER, ROLE_ADMIN):
        raise HTTPException(status_code=400, detail="Invalid role")
    if user_id == admin.id and req.role != ROLE_ADMIN:
        raise HTTPException(status_code=400, detail="You cannot demote your own account")
    user = await _get_user_or_404(db, user_id)
    user.role = req.role
    await db.flush()
    logger.info("Admin %s set user %s role=%s", admin.username, user.username, req.role)
    return {"success": True, "user": user_payload(user)}

@router.delete("/users/{user_id}")
async def delete_user(user_id: UUID, db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    user = await _get_user_or_404(db, user_id)
    await db.delete(user)
    await db.flush()
    logger.info("Admin %s deleted user %s", admin.username, user.username)
    return {"success": True, "message": "User deleted"}

@router.get("/stats")
async def stats(repo: ArticleRepository = Depends(get_repository), admin: User = Depends(require_admin)):
    return await repo.status_counts()
