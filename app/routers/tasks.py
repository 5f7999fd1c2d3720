# =============================================================================
# app/routers/tasks.py - Task Status Endpoints
# =============================================================================
# Status, results and cancellation of queued admin jobs (bulk email,
# announcements, Brevo sync). Admin only.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path
from pydantic import BaseModel

from app.auth import require_admin, AuthUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["Tasks"])


# =============================================================================
# Response Models
# =============================================================================

class TaskStatusResponse(BaseModel):
    """Response model for task status."""
    task_id: str
    status: str
    progress: int | None = None
    message: str | None = None
    result: dict | None = None
    error: str | None = None


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/{task_id}", response_model=TaskStatusResponse)
async def get_task_status(
    task_id: Annotated[str, Path(description="Celery task ID")],
    admin: AuthUser = Depends(require_admin),
):
    """
    Get the status of a background task.

    - PENDING: waiting in queue
    - PROGRESS: running; progress is a percentage
    - SUCCESS: result holds the sent/failed/total counts
    - FAILURE: error holds the message
    """
    try:
        from workers.celery_app import celery_app

        result = celery_app.AsyncResult(task_id)
        response = TaskStatusResponse(task_id=task_id, status=result.status)

        if result.status == "PROGRESS":
            info = result.info or {}
            response.progress = info.get("percent", 0)
            response.message = info.get("message", "Processing...")

        elif result.status == "SUCCESS":
            response.result = result.result
            response.progress = 100
            response.message = "Complete"

        elif result.status == "FAILURE":
            response.error = str(result.result) if result.result else "Unknown error"
            response.message = "Failed"

        elif result.status == "PENDING":
            response.progress = 0
            response.message = "Waiting in queue..."

        return response

    except Exception as e:
        logger.error(f"Error getting task status: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to get task status: {e}")


@router.get("/{task_id}/result")
async def get_task_result(
    task_id: Annotated[str, Path(description="Celery task ID")],
    admin: AuthUser = Depends(require_admin),
):
    """Result of a finished task; other states return status only."""
    try:
        from workers.celery_app import celery_app

        result = celery_app.AsyncResult(task_id)

        if result.status == "SUCCESS":
            return {"task_id": task_id, "status": "SUCCESS", "result": result.result}

        if result.status == "FAILURE":
            return {
                "task_id": task_id,
                "status": "FAILURE",
                "error": str(result.result) if result.result else "Unknown error",
            }

        return {"task_id": task_id, "status": result.status, "message": "Task not yet complete"}

    except Exception as e:
        logger.error(f"Error getting task result: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to get task result: {e}")


@router.delete("/{task_id}")
async def cancel_task(
    task_id: Annotated[str, Path(description="Celery task ID")],
    admin: AuthUser = Depends(require_admin),
):
    """
    Cancel a pending or running task.

    Recipients already emailed stay emailed.
    """
    try:
        from workers.celery_app import celery_app

        result = celery_app.AsyncResult(task_id)

        if result.status in ["SUCCESS", "FAILURE"]:
            return {
                "task_id": task_id,
                "message": f"Task already {result.status.lower()}, cannot cancel",
                "cancelled": False,
            }

        result.revoke(terminate=True)
        logger.info(f"Admin {admin.id} cancelled task {task_id}")
        return {"task_id": task_id, "message": "Task cancelled", "cancelled": True}

    except Exception as e:
        logger.error(f"Error cancelling task: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to cancel task: {e}")
