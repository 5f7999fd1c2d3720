# =============================================================================
# tests/ - Test Suite
# =============================================================================
# Unit and route tests for the Courseware API. Supabase, Stripe, Gmail,
# Brevo and Celery are always mocked.
#
# Run tests with: pytest
# =============================================================================
