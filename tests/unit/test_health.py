from __future__ import annotations

from src.monitoring.health import HealthChecker


def test_output_health_creates_directory(config):
    result = HealthChecker(config).check_output_health()

    assert result["status"] == "healthy"
    assert result["directory"] == config.attachment_directory


def test_output_health_reports_unwritable_path(config, tmp_path):
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("file")
    config = config.model_copy(update={"attachment_directory": str(blocker / "sub")})

    result = HealthChecker(config).check_output_health()

    assert result["status"] == "unhealthy"
    assert "error" in result


def test_comprehensive_health_check(config, fake_imap):
    result = HealthChecker(config).comprehensive_health_check()

    assert result["overall_status"] == "healthy"
    assert result["components"]["imap"]["server"] == "imap.test.local"


def test_imap_failure_makes_overall_unhealthy(config, monkeypatch):
    import imaplib

    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(imaplib, "IMAP4_SSL", refuse)

    result = HealthChecker(config).comprehensive_health_check()

    assert result["overall_status"] == "unhealthy"
    assert result["components"]["imap"]["status"] == "unhealthy"
