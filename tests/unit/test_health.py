"""Health endpoint tests."""


def test_health_endpoint(client):
    """Test health check returns healthy status."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data


def test_root_endpoint(client):
    """Test root endpoint returns app info."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Assistant Metrics"
    assert "version" in data


def test_scheduler_disabled_by_environment():
    """Lifespan skips the snapshot job when METRICS_SCHEDULER_ENABLED is false."""
    from fastapi.testclient import TestClient

    from assistant_metrics.main import app

    with TestClient(app):
        assert app.state.metrics_scheduler is None


def test_scheduler_started_by_lifespan(monkeypatch):
    """Lifespan starts the snapshot job when enabled and stops it on shutdown."""
    from fastapi.testclient import TestClient

    from assistant_metrics.config import get_settings
    from assistant_metrics.main import app

    settings = get_settings()
    monkeypatch.setattr(settings, "metrics_scheduler_enabled", True)
    # Long enough that the job never runs during the test
    monkeypatch.setattr(settings, "metrics_initial_delay_seconds", 3600)

    with TestClient(app):
        scheduler = app.state.metrics_scheduler
        assert scheduler is not None
        assert scheduler.running
        assert scheduler.initial_delay_seconds == 3600
        assert scheduler.interval_seconds == settings.metrics_update_interval_hours * 3600

    assert not scheduler.running
