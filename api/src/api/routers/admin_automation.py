"""Admin automation control."""
from __future__ import annotations
import logging
from fastapi import APIRouter, Depends
from phoneverse.models import User
from phoneverse.services.article_repository import ArticleRepository
from pipeline.automation import TRIGGER_MANUAL, AutomationController
from api.dependencies import get_automation, get_repository, require_admin

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/automation/status")
async def automation_status(
    controller: AutomationController = Depends(get_automation),
    admin: User = Depends(require_admin),
):
    return controller.status()

@router.post("/automation/start")
async def automation_start(
    controller: AutomationController = Depends(get_automation),
    admin: User = Depends(require_admin),
):
    controller.start()
    return {"success": True, "message": "Automation started", "status": controller.status()}

@router.post("/automation/stop")
async def automation_stop(
    controller: AutomationController = Depends(get_automation),
    admin: User = Depends(require_admin),
):
    controller.stop()
    return {"success": True, "message": "Automation stopped", "status": controller.status()}

@router.post("/automation/trigger")
async def automation_trigger(
    controller: AutomationController = Depends(get_automation),
    admin: User = Depends(require_admin),
):
    started = controller.launch(TRIGGER_MANUAL)
    if not started:
        return {"success": False, "message": "Automation is already running"}
    logger.info("Automation triggered by %s", admin.username)
    return {"success": True, "message": "Automation triggered"}

@router.post("/clear-sources")
async def clear_sources(
    repo: ArticleRepository = Depends(get_repository),
    admin: User = Depends(require_admin),
):
    removed = await repo.clear_tracked_sources()
    logger.info("Admin %s cleared %d tracked sources", admin.username, removed)
    return {"success": True, "message": f"Cleared {removed} tracked sources", "cleared": removed}
