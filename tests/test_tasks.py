# =============================================================================
# tests/test_tasks.py - Celery Task and Task Status Tests
# =============================================================================
# Tasks are called directly (synchronously); progress reporting is patched
# so no worker or broker is involved.
# =============================================================================

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from core.models.admin import NotificationType
from core.services.admin_service import AdminService
from core.services.notification_service import NotificationService
from workers.celery_app import celery_app
from workers.tasks import notify_new_content, send_bulk_email, sync_brevo_contacts


@pytest.fixture
def progress():
    with patch("workers.tasks.update_progress") as mock_progress:
        yield mock_progress


# =============================================================================
# Configuration
# =============================================================================

class TestCeleryConfig:

    def test_email_tasks_routed_to_email_queue(self):
        routes = celery_app.conf.task_routes
        assert routes["workers.tasks.send_bulk_email"] == {"queue": "email"}
        assert routes["workers.tasks.sync_brevo_contacts"] == {"queue": "email"}

    def test_json_only(self):
        assert celery_app.conf.task_serializer == "json"
        assert celery_app.conf.accept_content == ["json"]


# =============================================================================
# Tasks
# =============================================================================

class TestBulkEmailTask:

    def test_uses_given_recipients(self, progress):
        recipients = [{"id": "u1", "email": "one@example.com", "name": ""}]

        def fake_send(recipients, subject, message, on_progress=None):
            on_progress(1, 1)
            return {"sent": 1, "failed": 0, "total": 1}

        with patch.object(NotificationService, "find_recipients") as mock_find, \
                patch.object(NotificationService, "send_bulk_email", side_effect=fake_send):
            result = send_bulk_email("marketing", "Sale", "50% off", recipients=recipients)

        assert result == {"sent": 1, "failed": 0, "total": 1}
        mock_find.assert_not_called()
        progress.assert_called_once_with(1, 1, "Sent 1 of 1")

    def test_looks_up_recipients_when_missing(self, progress):
        with patch.object(NotificationService, "find_recipients", return_value=[]) as mock_find, \
                patch.object(NotificationService, "send_bulk_email", return_value={"sent": 0, "failed": 0, "total": 0}):
            send_bulk_email("contentUpdates", "News", "Body")

        mock_find.assert_called_once_with(NotificationType.CONTENT_UPDATES)


class TestNotifyNewContentTask:

    def test_sends_batch(self, progress):
        with patch.object(
            NotificationService,
            "send_new_content_notification",
            return_value={"sent": 3, "failed": 0, "total": 3},
        ) as mock_send:
            result = notify_new_content("New module", "<p>Live</p>")

        mock_send.assert_called_once_with("New module", "<p>Live</p>")
        assert result["sent"] == 3


class TestBrevoSyncTask:

    def test_parses_since(self, progress):
        with patch.object(AdminService, "sync_brevo_contacts", return_value={"synced": 0, "failed": 0, "total": 0}) as mock_sync:
            sync_brevo_contacts("2024-03-01T00:00:00+00:00")

        assert mock_sync.call_args.kwargs["since"] == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_all_profiles(self, progress):
        with patch.object(AdminService, "sync_brevo_contacts", return_value={"synced": 2, "failed": 0, "total": 2}) as mock_sync:
            result = sync_brevo_contacts()

        assert mock_sync.call_args.kwargs["since"] is None
        assert result["synced"] == 2


# =============================================================================
# /api/tasks
# =============================================================================

class TestTaskRoutes:

    def test_requires_admin(self, member_client):
        assert member_client.get("/api/tasks/abc").status_code == 403

    def test_progress_status(self, admin_client):
        fake = MagicMock()
        fake.status = "PROGRESS"
        fake.info = {"current": 2, "total": 4, "percent": 50, "message": "Sent 2 of 4"}

        with patch.object(celery_app, "AsyncResult", return_value=fake):
            response = admin_client.get("/api/tasks/task-1")

        assert response.status_code == 200
        assert response.json()["progress"] == 50
        assert response.json()["message"] == "Sent 2 of 4"

    def test_success_result(self, admin_client):
        fake = MagicMock()
        fake.status = "SUCCESS"
        fake.result = {"sent": 4, "failed": 0, "total": 4}

        with patch.object(celery_app, "AsyncResult", return_value=fake):
            response = admin_client.get("/api/tasks/task-1/result")

        assert response.json() == {"task_id": "task-1", "status": "SUCCESS", "result": {"sent": 4, "failed": 0, "total": 4}}

    def test_cancel_finished_task(self, admin_client):
        fake = MagicMock()
        fake.status = "SUCCESS"

        with patch.object(celery_app, "AsyncResult", return_value=fake):
            response = admin_client.delete("/api/tasks/task-1")

        assert response.json()["cancelled"] is False
        fake.revoke.assert_not_called()

    def test_cancel_running_task(self, admin_client):
        fake = MagicMock()
        fake.status = "PROGRESS"

        with patch.object(celery_app, "AsyncResult", return_value=fake):
            response = admin_client.delete("/api/tasks/task-1")

        assert response.json()["cancelled"] is True
        fake.revoke.assert_called_once_with(terminate=True)
