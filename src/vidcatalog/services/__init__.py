"""Service layer for the video catalog."""

from vidcatalog.services.catalog import CatalogService
from vidcatalog.services.object_store import AzureBlobObjectStore, ObjectStoreClient, UploadedAsset
from vidcatalog.services.query_builder import QueryBuilder
from vidcatalog.services.results import OperationResult

__all__ = [
    "AzureBlobObjectStore",
    "CatalogService",
    "ObjectStoreClient",
    "OperationResult",
    "QueryBuilder",
    "UploadedAsset",
]
