from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from worker_operator.core.errors import ManifestError
from worker_operator.store.base import ObjectKey

API_GROUP = "temporal.io"
API_VERSION = f"{API_GROUP}/v1beta1"
WORKER_PROCESS_KIND = "TemporalWorkerProcess"
CLUSTER_KIND = "TemporalCluster"


class ResourceModel(BaseModel):
    """Base model: snake_case in Python, camelCase on the wire, unknown fields kept."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class ConditionStatus(StrEnum):
    true = "True"
    false = "False"
    unknown = "Unknown"


class Condition(ResourceModel):
    type: str
    status: ConditionStatus
    reason: str
    message: str = ""
    last_transition_time: datetime
    observed_generation: int | None = None


class ObjectMeta(ResourceModel):
    name: str
    namespace: str | None = None
    uid: str | None = None
    resource_version: str | None = None
    generation: int | None = None
    deletion_timestamp: datetime | None = None
    labels: dict[str, str] | None = None
    annotations: dict[str, str] | None = None


class ClusterReference(ResourceModel):
    name: str
    namespace: str | None = None


class GitReference(ResourceModel):
    branch: str | None = None


class GitRepository(ResourceModel):
    url: str
    reference: GitReference | None = None


class BuildRegistry(ResourceModel):
    repository: str
    credentials_secret: str | None = None


class BuilderSpec(ResourceModel):
    enabled: bool = False
    version: str | None = None
    image: str | None = None
    build_dir: str | None = None
    git_repository: GitRepository | None = None
    build_registry: BuildRegistry | None = None


class WorkerProcessSpec(ResourceModel):
    cluster_ref: ClusterReference
    version: str | None = None
    image: str | None = None
    replicas: int | None = None
    pull_policy: str | None = None
    image_pull_secrets: list[dict[str, str]] | None = None
    job_ttl_seconds_after_finished: int | None = None
    temporal_namespace: str | None = None
    builder: BuilderSpec | None = None

    def builder_enabled(self) -> bool:
        return self.builder is not None and self.builder.enabled


class WorkerProcessStatus(ResourceModel):
    ready: bool = False
    version: str | None = None
    built_image: str | None = None
    conditions: list[Condition] = Field(default_factory=list)


class _Resource(ResourceModel):
    api_version: str = API_VERSION
    kind: str
    metadata: ObjectMeta

    @classmethod
    def from_object(cls, obj: dict[str, Any]):
        """Parse a manifest dict, raising ManifestError on invalid content."""
        try:
            return cls.model_validate(obj)
        except ValidationError as exc:
            name = (obj.get("metadata") or {}).get("name", "<unknown>")
            raise ManifestError(
                f"Invalid {cls.__name__} manifest",
                details={"name": name, "errors": exc.error_count()},
            ) from exc

    def to_object(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace or "default"

    @property
    def key(self) -> ObjectKey:
        return ObjectKey(namespace=self.namespace, name=self.name)


class WorkerProcess(_Resource):
    """The TemporalWorkerProcess custom resource."""

    kind: str = WORKER_PROCESS_KIND
    spec: WorkerProcessSpec
    status: WorkerProcessStatus = Field(default_factory=WorkerProcessStatus)

    def is_being_deleted(self) -> bool:
        return self.metadata.deletion_timestamp is not None

    def cluster_key(self) -> ObjectKey:
        """Key of the referenced cluster; the namespace defaults to the worker's own."""
        ref = self.spec.cluster_ref
        return ObjectKey(namespace=ref.namespace or self.namespace, name=ref.name)

    def owner_reference(self) -> dict[str, Any]:
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "name": self.name,
            "uid": self.metadata.uid,
            "controller": True,
            "blockOwnerDeletion": True,
        }

    def image_reference(self) -> str | None:
        """Image the worker deployment runs: the built image, or spec image and version."""
        if self.spec.builder_enabled():
            return self.status.built_image
        if not self.spec.image:
            return None
        if self.spec.version and ":" not in self.spec.image.rsplit("/", 1)[-1]:
            return f"{self.spec.image}:{self.spec.version}"
        return self.spec.image


class MTLSSpec(ResourceModel):
    enabled: bool = False


class ClusterSpec(ResourceModel):
    version: str | None = None
    frontend_port: int = 7233
    mtls: MTLSSpec | None = Field(default=None, alias="mTLS")


class Cluster(_Resource):
    """The referenced TemporalCluster. Read only."""

    kind: str = CLUSTER_KIND
    spec: ClusterSpec = Field(default_factory=ClusterSpec)

    def frontend_address(self) -> str:
        return f"{self.name}-frontend.{self.namespace}:{self.spec.frontend_port}"

    def mtls_enabled(self) -> bool:
        return self.spec.mtls is not None and self.spec.mtls.enabled
