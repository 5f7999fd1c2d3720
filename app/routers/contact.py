# =============================================================================
# app/routers/contact.py - Public Contact Form
# =============================================================================

from fastapi import APIRouter

from core.models.account import ContactRequest
from core.services.notification_service import NotificationService

router = APIRouter(tags=["Contact"])


@router.post("/contact")
async def submit_contact_form(request: ContactRequest):
    """
    Forward a visitor's message to the site owner.

    Delivery problems are logged and never fail the request.
    """
    message = NotificationService.send_contact_message(request)
    return {"success": True, "message": message}
