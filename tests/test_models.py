"""Tests for resource models and defaulting."""

import pytest

from factories import builder_spec, cluster_manifest, worker_manifest
from worker_operator.core.errors import ManifestError
from worker_operator.domain.defaults import apply_defaults
from worker_operator.domain.models import Cluster, WorkerProcess
from worker_operator.store.base import ObjectKey


class TestWorkerProcessModel:
    def test_parses_camel_case_manifest(self):
        worker = WorkerProcess.from_object(worker_manifest(builder=builder_spec()))

        assert worker.key == ObjectKey("apps", "orders-worker")
        assert worker.spec.cluster_ref.name == "prod"
        assert worker.spec.job_ttl_seconds_after_finished == 300
        assert worker.spec.builder.git_repository.reference.branch == "main"
        assert worker.spec.builder_enabled() is True

    def test_round_trip_keeps_unknown_fields(self):
        manifest = worker_manifest()
        manifest["metadata"]["managedFields"] = [{"manager": "kubectl"}]
        manifest["spec"]["futureField"] = {"x": 1}

        obj = WorkerProcess.from_object(manifest).to_object()

        assert obj["metadata"]["managedFields"] == [{"manager": "kubectl"}]
        assert obj["spec"]["futureField"] == {"x": 1}
        assert obj["spec"]["clusterRef"] == {"name": "prod"}
        assert obj["status"]["ready"] is False

    def test_invalid_manifest_raises_manifest_error(self):
        manifest = worker_manifest()
        del manifest["spec"]["clusterRef"]

        with pytest.raises(ManifestError):
            WorkerProcess.from_object(manifest)

    def test_cluster_namespace_defaults_to_worker_namespace(self):
        worker = WorkerProcess.from_object(worker_manifest(namespace="team-a"))

        assert worker.cluster_key() == ObjectKey("team-a", "prod")

    def test_cluster_namespace_from_reference(self):
        worker = WorkerProcess.from_object(
            worker_manifest(cluster_ref={"name": "shared", "namespace": "temporal"})
        )

        assert worker.cluster_key() == ObjectKey("temporal", "shared")

    def test_deletion_timestamp(self):
        manifest = worker_manifest()
        manifest["metadata"]["deletionTimestamp"] = "2026-10-17T10:00:00Z"

        assert WorkerProcess.from_object(manifest).is_being_deleted() is True

    def test_image_reference_uses_spec_version(self):
        worker = WorkerProcess.from_object(worker_manifest())

        assert worker.image_reference() == "ghcr.io/acme/orders-worker:1.4.0"

    def test_image_reference_keeps_explicit_tag(self):
        worker = WorkerProcess.from_object(worker_manifest(image="localhost:5000/worker:dev"))

        assert worker.image_reference() == "localhost:5000/worker:dev"

    def test_image_reference_uses_built_image_when_building(self):
        worker = WorkerProcess.from_object(worker_manifest(builder=builder_spec()))
        assert worker.image_reference() is None

        worker.status.built_image = "registry.acme.dev/orders-worker:1.4.0"

        assert worker.image_reference() == "registry.acme.dev/orders-worker:1.4.0"


class TestClusterModel:
    def test_frontend_address(self):
        cluster = Cluster.from_object(cluster_manifest(frontendPort=7234))

        assert cluster.frontend_address() == "prod-frontend.apps:7234"
        assert cluster.mtls_enabled() is False

    def test_mtls_alias(self):
        cluster = Cluster.from_object(cluster_manifest(mTLS={"enabled": True}))

        assert cluster.mtls_enabled() is True
        assert cluster.to_object()["spec"]["mTLS"] == {"enabled": True}


class TestDefaults:
    def test_fills_missing_fields(self, settings):
        worker = WorkerProcess.from_object(worker_manifest(defaults=False))

        changed = apply_defaults(worker, settings)

        assert changed is True
        assert worker.spec.replicas == settings.default_replicas
        assert worker.spec.pull_policy == "IfNotPresent"
        assert worker.spec.job_ttl_seconds_after_finished == 300
        assert worker.spec.temporal_namespace == "default"

    def test_no_change_when_complete(self, settings):
        worker = WorkerProcess.from_object(worker_manifest())

        assert apply_defaults(worker, settings) is False

    def test_builder_defaults(self, settings):
        builder = builder_spec()
        del builder["image"]
        del builder["buildDir"]
        del builder["version"]
        worker = WorkerProcess.from_object(worker_manifest(builder=builder))

        assert apply_defaults(worker, settings) is True
        assert worker.spec.builder.image == settings.default_builder_image
        assert worker.spec.builder.build_dir == "/"
        assert worker.spec.builder.version == "1.4.0"

    def test_disabled_builder_is_left_alone(self, settings):
        worker = WorkerProcess.from_object(
            worker_manifest(builder={"enabled": False})
        )

        assert apply_defaults(worker, settings) is False
        assert worker.spec.builder.image is None
