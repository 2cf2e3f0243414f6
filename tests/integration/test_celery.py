"""Integration tests for the Celery configuration."""

import pytest


@pytest.fixture(autouse=True)
def _celery_eager(settings):
    """Run tasks synchronously inside the test process."""
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True


class TestCeleryConfig:
    """Celery loads through Django settings."""

    def test_celery_app_is_importable(self):
        from config.celery import app

        assert app.main == "storefront"

    def test_celery_app_exported_from_init(self):
        from config import celery_app

        assert celery_app.main == "storefront"

    def test_celery_broker_url_configured(self, settings):
        assert settings.CELERY_BROKER_URL
        assert settings.CELERY_RESULT_BACKEND

    def test_celery_serializer_is_json(self, settings):
        assert settings.CELERY_TASK_SERIALIZER == "json"
        assert settings.CELERY_RESULT_SERIALIZER == "json"
        assert settings.CELERY_ACCEPT_CONTENT == ["json"]

    def test_celery_timezone_matches_django(self, settings):
        assert settings.CELERY_TIMEZONE == settings.TIME_ZONE

    def test_pending_expiry_is_scheduled(self, settings):
        entry = settings.CELERY_BEAT_SCHEDULE["expire-pending-orders"]
        assert entry["task"] == "orders.expire_pending_orders"

    def test_order_tasks_are_registered(self):
        from config.celery import app

        app.loader.import_default_modules()
        assert "orders.confirm_order_payment" in app.tasks
        assert "orders.expire_pending_orders" in app.tasks


class TestDebugTask:
    """The diagnostic task runs in eager mode."""

    def test_debug_task_returns_success(self):
        from modules.core.tasks import debug_task

        result = debug_task.delay()

        assert result.successful()
        assert result.result["status"] == "ok"

    def test_debug_task_direct_call(self):
        from modules.core.tasks import debug_task

        output = debug_task()

        assert output == {"status": "ok", "message": "Celery is working"}
