"""
Operator settings using Pydantic.

Provides environment-based configuration loading with WORKER_OPERATOR_ prefix.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Operator settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="WORKER_OPERATOR_",
    )

    # Scheduling
    requeue_delay: float = 2.0

    # Kubernetes API
    kubeconfig: str | None = None
    kube_context: str | None = None
    request_timeout: float = 30.0

    # Events
    event_component: str = "worker-operator"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Worker process defaults
    default_replicas: int = 1
    default_pull_policy: str = "IfNotPresent"
    default_job_ttl_seconds: int = 300
    default_temporal_namespace: str = "default"
    default_builder_image: str = "gcr.io/kaniko-project/executor:v1.23.2-debug"
    default_build_dir: str = "/"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
