"""Tests for operator settings."""

from worker_operator.config.settings import Settings


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.requeue_delay == 2.0
    assert settings.request_timeout == 30.0
    assert settings.default_replicas == 1
    assert settings.log_json is True


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("WORKER_OPERATOR_REQUEUE_DELAY", "5")
    monkeypatch.setenv("WORKER_OPERATOR_KUBE_CONTEXT", "staging")
    monkeypatch.setenv("WORKER_OPERATOR_LOG_JSON", "false")

    settings = Settings(_env_file=None)

    assert settings.requeue_delay == 5.0
    assert settings.kube_context == "staging"
    assert settings.log_json is False
