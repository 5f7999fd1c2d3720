# =============================================================================
# app/routers/admin.py - Admin Back Office Endpoints
# =============================================================================
# Users, metrics, analytics, site configuration, backups, bulk email and
# manual subscriptions. Every route requires the admin account.
#
# Mutating actions are written to the security event log with the
# caller's IP. Long-running jobs are queued on Celery and return a taskId
# that can be polled at /api/tasks/{taskId}.
# =============================================================================

import json
import logging
import secrets
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request
from fastapi.responses import Response

from app.auth import require_admin, AuthUser
from app.config import settings
from app.exceptions import ForbiddenError
from core.models.admin import (
    AnalyticsRange,
    BrevoContactsSync,
    BulkEmailRequest,
    DashboardMetrics,
    NewContentNotification,
)
from core.models.site import BannerUpdate, MaintenanceUpdate, SettingsUpdate
from core.services.admin_service import AdminService
from core.services.analytics_service import AnalyticsService
from core.services.config_service import ConfigService
from core.services.notification_service import NotificationService
from core.services.subscription_service import SubscriptionService
from lib.utils import utc_now

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


def client_ip(request: Request) -> str | None:
    """Caller IP, preferring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def audit(request: Request, admin: AuthUser, event_type: str, **details) -> None:
    AdminService.record_event(event_type, str(admin.id), details, client_ip(request))


def enqueue(task, *args, **kwargs) -> str:
    """
    Submit a Celery task and return its ID.

    Raises:
        HTTPException: 503 if the broker is unreachable
    """
    try:
        result = task.delay(*args, **kwargs)
    except Exception as e:
        logger.error(f"Error submitting {task.name}: {e}")
        raise HTTPException(
            status_code=503,
            detail=f"Failed to queue task. Is Redis running? Error: {e}",
        )
    return result.id


# =============================================================================
# Users & Metrics
# =============================================================================

@router.get("/users")
async def list_users(admin: AuthUser = Depends(require_admin)):
    """All auth users with profile fields and subscription flags."""
    return AdminService.list_users()


@router.get("/dashboard-metrics", response_model=DashboardMetrics)
async def dashboard_metrics(admin: AuthUser = Depends(require_admin)):
    return AdminService.dashboard_metrics()


@router.get("/analytics")
async def analytics(
    range_: Annotated[AnalyticsRange, Query(alias="range")] = AnalyticsRange.MONTH,
    admin: AuthUser = Depends(require_admin),
):
    """
    Growth, engagement, popular content and subscription mix.

    Buckets are daily for 7/30 days, weekly for 90 days and monthly for a year.
    """
    return AnalyticsService.build_report(range_)


# =============================================================================
# Site configuration
# =============================================================================

@router.put("/config/maintenance")
async def set_maintenance(
    request: Request,
    body: MaintenanceUpdate,
    admin: AuthUser = Depends(require_admin),
):
    ConfigService.set_maintenance(body.enable)
    audit(request, admin, "maintenance_mode_changed", enabled=body.enable)
    return {"success": True, "maintenanceMode": body.enable}


@router.put("/config/banner")
async def set_banner(
    request: Request,
    body: BannerUpdate,
    admin: AuthUser = Depends(require_admin),
):
    ConfigService.set_banner(body.enabled, body.text)
    audit(request, admin, "announcement_banner_changed", enabled=body.enabled)
    return {"success": True}


@router.get("/config/settings")
async def get_settings(admin: AuthUser = Depends(require_admin)):
    return {"settings": ConfigService.get_settings()}


@router.put("/config/settings")
async def update_settings(
    request: Request,
    body: SettingsUpdate,
    admin: AuthUser = Depends(require_admin),
):
    """Write allowlisted settings; unknown keys reject the whole update."""
    values = ConfigService.update_settings(body.settings)
    audit(request, admin, "settings_updated", keys=sorted(values))
    return {"success": True, "settings": values}


# =============================================================================
# Backup
# =============================================================================

@router.get("/backup/content")
async def backup_content(
    request: Request,
    admin: AuthUser = Depends(require_admin),
):
    """Download every module and section as JSON."""
    backup = AdminService.content_backup()
    audit(request, admin, "content_backup_downloaded")

    filename = f"content-backup-{utc_now().strftime('%Y-%m-%dT%H-%M-%S')}.json"
    return Response(
        content=json.dumps(backup, indent=2, default=str),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# =============================================================================
# Email
# =============================================================================

@router.post("/bulk-email")
async def bulk_email(
    request: Request,
    body: BulkEmailRequest,
    admin: AuthUser = Depends(require_admin),
):
    """
    Email every member opted into notificationType.

    Requires the shared admin secret as a second factor.
    Returns {taskId, recipients}.
    """
    if not settings.ADMIN_SECRET or not secrets.compare_digest(body.admin_secret, settings.ADMIN_SECRET):
        logger.warning(f"Bulk email rejected: bad admin secret from {admin.id}")
        raise ForbiddenError("Invalid admin secret")

    from workers.tasks import send_bulk_email

    recipients = NotificationService.find_recipients(body.notification_type)
    task_id = enqueue(
        send_bulk_email,
        body.notification_type.value,
        body.subject,
        body.message,
        recipients=recipients,
    )

    audit(
        request, admin, "bulk_email_queued",
        notification_type=body.notification_type.value,
        recipients=len(recipients),
        task_id=task_id,
    )
    return {"taskId": task_id, "recipients": len(recipients)}


@router.post("/notify-new-content")
async def notify_new_content(
    request: Request,
    body: NewContentNotification,
    admin: AuthUser = Depends(require_admin),
):
    from workers.tasks import notify_new_content as notify_task

    task_id = enqueue(notify_task, body.subject, body.html)
    audit(request, admin, "new_content_notification_queued", task_id=task_id)
    return {"taskId": task_id}


@router.post("/sync-brevo-contacts")
async def sync_brevo_contacts(
    request: Request,
    body: BrevoContactsSync,
    admin: AuthUser = Depends(require_admin),
):
    """Push all members, or those who joined recently, to Brevo."""
    from workers.tasks import sync_brevo_contacts as sync_task

    since = AdminService.resolve_sync_since(body.filter, body.since)
    task_id = enqueue(sync_task, since.isoformat() if since else None)
    audit(request, admin, "brevo_sync_queued", filter=body.filter, task_id=task_id)
    return {"taskId": task_id}


# =============================================================================
# Manual subscriptions
# =============================================================================

@router.post("/users/{user_id}/grant-monthly")
async def grant_monthly(
    request: Request,
    user_id: Annotated[str, Path(description="User ID")],
    admin: AuthUser = Depends(require_admin),
):
    """Give a member premium access without Stripe."""
    subscription = SubscriptionService.grant_manual_monthly(user_id)
    audit(request, admin, "manual_subscription_granted", target_user_id=user_id)
    return {"success": True, "subscription": subscription}


@router.post("/users/{user_id}/revoke-monthly")
async def revoke_monthly(
    request: Request,
    user_id: Annotated[str, Path(description="User ID")],
    admin: AuthUser = Depends(require_admin),
):
    subscription = SubscriptionService.revoke_manual_monthly(user_id)
    audit(request, admin, "manual_subscription_revoked", target_user_id=user_id)
    return {"success": True, "subscription": subscription}
