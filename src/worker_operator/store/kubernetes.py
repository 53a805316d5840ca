"""
Kubernetes resource store.

Talks to the API server through the ``kubernetes`` dynamic client so that
custom resources and built-in kinds share a single code path. The client is
synchronous; calls run in the default executor with a per-call timeout.

Configuration:
    kubeconfig: Path to kubeconfig file (optional)
    context: Kubeconfig context to use (optional)
    timeout: API request timeout in seconds
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from functools import partial
from typing import Any

import structlog
from kubernetes import client, config, dynamic
from kubernetes.dynamic.exceptions import (
    ConflictError as DynamicConflictError,
    DynamicApiError,
    NotFoundError as DynamicNotFoundError,
    ResourceNotFoundError,
)

from worker_operator.core.errors import ConfigurationError, ConflictError, NotFoundError, StoreError
from worker_operator.store.base import ObjectKey, object_key

logger = structlog.get_logger()


@dataclass
class KubernetesResourceStore:
    """Resource store backed by a Kubernetes API server."""

    kubeconfig: str | None = None
    context: str | None = None
    timeout: float = 30.0

    _client: Any = field(default=None, repr=False, compare=False)

    def _ensure_initialized(self) -> Any:
        """Load in-cluster config, falling back to kubeconfig."""
        if self._client is not None:
            return self._client

        try:
            config.load_incluster_config()
        except config.ConfigException:
            try:
                config.load_kube_config(config_file=self.kubeconfig, context=self.context)
            except config.ConfigException as e:
                raise ConfigurationError(f"Failed to load Kubernetes config: {e}") from e

        self._client = dynamic.DynamicClient(client.ApiClient())
        return self._client

    async def _run_sync(self, func: Any, *args: Any, **kwargs: Any) -> Any:
        """Run a synchronous client call in the executor, bounded by the timeout."""
        loop = asyncio.get_running_loop()
        call = partial(func, *args, _request_timeout=self.timeout, **kwargs)
        return await asyncio.wait_for(loop.run_in_executor(None, call), timeout=self.timeout)

    def _resource(self, api_version: str, kind: str) -> Any:
        api = self._ensure_initialized()
        try:
            return api.resources.get(api_version=api_version, kind=kind)
        except ResourceNotFoundError as e:
            raise StoreError(
                f"Kind {kind} is not served by the cluster",
                details={"api_version": api_version},
            ) from e

    async def _call(self, verb: str, kind: str, key: ObjectKey, func: Any, *args: Any, **kwargs: Any) -> dict[str, Any]:
        try:
            result = await self._run_sync(func, *args, **kwargs)
        except DynamicNotFoundError as e:
            raise NotFoundError(f"{kind} {key} not found") from e
        except DynamicConflictError as e:
            raise ConflictError(f"Conflict on {verb} of {kind} {key}", details={"reason": e.summary()}) from e
        except DynamicApiError as e:
            raise StoreError(
                f"Failed to {verb} {kind} {key}",
                details={"status": e.status, "reason": e.summary()},
            ) from e
        return result.to_dict()

    async def get(self, api_version: str, kind: str, key: ObjectKey) -> dict[str, Any]:
        resource = self._resource(api_version, kind)
        return await self._call(
            "get", kind, key, self._client.get, resource, name=key.name, namespace=key.namespace
        )

    async def create(self, obj: dict[str, Any]) -> dict[str, Any]:
        # Objects named by the server only carry generateName until created.
        metadata = obj.get("metadata") or {}
        key = ObjectKey(
            namespace=metadata.get("namespace") or "default",
            name=metadata.get("name") or metadata.get("generateName") or "",
        )
        resource = self._resource(obj["apiVersion"], obj["kind"])
        logger.debug("kubernetes_create", kind=obj["kind"], key=str(key))
        return await self._call(
            "create", obj["kind"], key, self._client.create, resource, body=obj, namespace=key.namespace
        )

    async def update(self, obj: dict[str, Any]) -> dict[str, Any]:
        key = object_key(obj)
        resource = self._resource(obj["apiVersion"], obj["kind"])
        logger.debug("kubernetes_update", kind=obj["kind"], key=str(key))
        return await self._call(
            "update", obj["kind"], key, self._client.replace, resource, body=obj, namespace=key.namespace
        )

    async def update_status(self, obj: dict[str, Any]) -> dict[str, Any]:
        key = object_key(obj)
        resource = self._resource(obj["apiVersion"], obj["kind"])
        logger.debug("kubernetes_update_status", kind=obj["kind"], key=str(key))
        return await self._call(
            "update status of",
            obj["kind"],
            key,
            self._client.replace,
            resource.status,
            body=obj,
            namespace=key.namespace,
        )
