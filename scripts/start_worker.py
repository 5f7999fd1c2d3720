#!/usr/bin/env python3
# =============================================================================
# scripts/start_worker.py - Celery Worker Entry Point
# =============================================================================
# Starts a Celery worker for the admin background jobs (bulk email, new
# content announcements, Brevo contact sync).
#
# Usage:
#   python scripts/start_worker.py
#
#   # Or use Celery CLI directly
#   celery -A workers.celery_app worker -Q default,email --loglevel=info
#
# Prerequisites:
#   - Redis must be running at REDIS_URL
#   - Environment variables must be set (.env file)
# =============================================================================

import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from workers.celery_app import celery_app  # noqa: E402


def main():
    """Start the Celery worker on both queues."""
    print("=" * 60)
    print("Courseware Celery Worker")
    print("=" * 60)
    print()
    print("Queues: default, email")
    print("Press Ctrl+C to stop")
    print()

    # One process: the email queue is rate limited per worker
    celery_app.worker_main([
        "worker",
        "--loglevel=info",
        "--queues=default,email",
        "--concurrency=1",
    ])


if __name__ == "__main__":
    main()
