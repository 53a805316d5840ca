from __future__ import annotations

import re
from typing import Any

from worker_operator.domain.models import WorkerProcess

MANAGED_BY = "worker-operator"
MAX_NAME_LENGTH = 63

_INVALID_NAME_CHARS = re.compile(r"[^a-z0-9-]+")


def slugify(value: str) -> str:
    return _INVALID_NAME_CHARS.sub("-", value.lower()).strip("-")


def object_name(*parts: str) -> str:
    """Join name parts into a valid object name."""
    name = "-".join(slugify(part) for part in parts if part)
    return name[:MAX_NAME_LENGTH].rstrip("-")


def selector_labels(worker: WorkerProcess, component: str) -> dict[str, str]:
    return {
        "app.kubernetes.io/name": worker.name,
        "app.kubernetes.io/component": component,
    }


def labels(worker: WorkerProcess, component: str) -> dict[str, str]:
    result = selector_labels(worker, component)
    result["app.kubernetes.io/managed-by"] = MANAGED_BY
    if worker.spec.version:
        result["app.kubernetes.io/version"] = slugify(worker.spec.version)
    return result


def merge_labels(obj: dict[str, Any], wanted: dict[str, str]) -> None:
    metadata = obj.setdefault("metadata", {})
    current = metadata.get("labels") or {}
    metadata["labels"] = {**current, **wanted}
