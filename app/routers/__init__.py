# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints (mounted at the root)
# - site_config.py: Public site flags and CSRF token
# - content.py: Modules, sections and search
# - bookmarks.py: Reading position per module
# - user.py: Profile, progress, password and email preferences
# - contact.py: Public contact form
# - subscription.py: Stripe Checkout, portal and cancellation
# - webhooks.py: Stripe webhook receiver
# - admin.py: Admin back office
# - admin_content.py: Admin content editor
# - tasks.py: Background task status endpoints
#
# Each router is mounted in main.py under /api.
# =============================================================================

from . import health
from . import site_config
from . import content
from . import bookmarks
from . import user
from . import contact
from . import subscription
from . import webhooks
from . import admin
from . import admin_content
from . import tasks

__all__ = [
    "health",
    "site_config",
    "content",
    "bookmarks",
    "user",
    "contact",
    "subscription",
    "webhooks",
    "admin",
    "admin_content",
    "tasks",
]
