# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains framework-agnostic business logic:
# - models/: Pydantic schemas for request/response validation
# - services/: Catalogue, paywall, accounts, billing, admin and email
#
# Services raise CoursewareException subclasses; routers stay thin and
# let the app-level handlers turn them into JSON responses.
# =============================================================================
