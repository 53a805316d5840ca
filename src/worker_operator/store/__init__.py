"""Resource store backends."""

from worker_operator.store.base import ObjectKey, ResourceStore, object_key

__all__ = ["ObjectKey", "ResourceStore", "object_key"]
