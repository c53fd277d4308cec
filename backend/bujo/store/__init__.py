"""Backend-as-a-service: a schema-less document store mounted under the api prefix."""

from bujo.store.cloud import Cloud, CloudRequest
from bujo.store.errors import StoreError
from bujo.store.server import DocumentServer

__all__ = ["Cloud", "CloudRequest", "DocumentServer", "StoreError"]
