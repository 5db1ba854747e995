# product_catalog/blob_store.py

"""
Blob Store backends for the catalog snapshot.
The service only needs whole-object list/fetch/upload at a fixed name, so the
interface is deliberately small. Azure Blob Storage is used when credentials
are configured; otherwise an in-process memory store keeps the service usable
for local development and tests.
"""
import logging
import os
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

from azure.core.exceptions import ResourceExistsError
from azure.storage.blob import BlobServiceClient, ContainerClient, ContentSettings

logger = logging.getLogger(__name__)

# Read storage settings from environment variables
AZURE_STORAGE_ACCOUNT_NAME = os.getenv("AZURE_STORAGE_ACCOUNT_NAME")
AZURE_STORAGE_ACCOUNT_KEY = os.getenv("AZURE_STORAGE_ACCOUNT_KEY")
AZURE_STORAGE_CONTAINER_NAME = os.getenv(
    "AZURE_STORAGE_CONTAINER_NAME", "product-catalog"
)


@dataclass(frozen=True)
class BlobInfo:
    pathname: str
    url: str
    content_type: Optional[str] = None


class BlobStore:
    """Interface every snapshot backend implements."""

    def list(self, prefix: str) -> List[BlobInfo]:
        raise NotImplementedError

    def fetch(self, pathname: str) -> bytes:
        raise NotImplementedError

    def upload(self, pathname: str, data: bytes, content_type: str) -> BlobInfo:
        """Replace the whole object stored under `pathname`."""
        raise NotImplementedError

    def ensure_ready(self) -> None:
        """Prepare the backend before serving requests."""


class InMemoryBlobStore(BlobStore):
    """Process-local store; contents vanish when the process exits."""

    def __init__(self):
        self._objects: Dict[str, bytes] = {}
        self._content_types: Dict[str, str] = {}
        self._lock = threading.Lock()
        self.upload_count = 0

    def list(self, prefix: str) -> List[BlobInfo]:
        with self._lock:
            return [
                self._info(name) for name in self._objects if name.startswith(prefix)
            ]

    def fetch(self, pathname: str) -> bytes:
        with self._lock:
            if pathname not in self._objects:
                raise KeyError(pathname)
            return self._objects[pathname]

    def upload(self, pathname: str, data: bytes, content_type: str) -> BlobInfo:
        with self._lock:
            self._objects[pathname] = data
            self._content_types[pathname] = content_type
            self.upload_count += 1
            return self._info(pathname)

    def _info(self, pathname: str) -> BlobInfo:
        return BlobInfo(
            pathname=pathname,
            url=f"memory://{pathname}",
            content_type=self._content_types[pathname],
        )


class AzureBlobStore(BlobStore):
    """
    Snapshot storage in an Azure Blob Storage container.
    The container is created with public blob read access so storefronts can
    read the catalog object directly; uploads always overwrite the same name.
    """

    def __init__(self, container: ContainerClient):
        self._container = container

    @classmethod
    def from_account(cls, account_name: str, account_key: str, container_name: str):
        service = BlobServiceClient(
            account_url=f"https://{account_name}.blob.core.windows.net",
            credential=account_key,
        )
        return cls(service.get_container_client(container_name))

    def _info(self, pathname: str, content_type: Optional[str] = None) -> BlobInfo:
        return BlobInfo(
            pathname=pathname,
            url=f"{self._container.url}/{pathname}",
            content_type=content_type,
        )

    def list(self, prefix: str) -> List[BlobInfo]:
        return [
            self._info(blob.name, blob.content_settings.content_type)
            for blob in self._container.list_blobs(name_starts_with=prefix)
        ]

    def fetch(self, pathname: str) -> bytes:
        return self._container.download_blob(pathname).readall()

    def upload(self, pathname: str, data: bytes, content_type: str) -> BlobInfo:
        self._container.upload_blob(
            name=pathname,
            data=data,
            overwrite=True,
            content_settings=ContentSettings(content_type=content_type),
        )
        return self._info(pathname, content_type)

    def ensure_ready(self) -> None:
        try:
            self._container.create_container(public_access="blob")
            logger.info(f"Created blob container '{self._container.container_name}'.")
        except ResourceExistsError:
            logger.info(
                f"Blob container '{self._container.container_name}' already exists."
            )


def build_blob_store() -> BlobStore:
    """Pick the Azure backend when credentials are set, memory otherwise."""
    if AZURE_STORAGE_ACCOUNT_NAME and AZURE_STORAGE_ACCOUNT_KEY:
        logger.info("Catalog Service: Azure environment variables populated correctly.")
        return AzureBlobStore.from_account(
            AZURE_STORAGE_ACCOUNT_NAME,
            AZURE_STORAGE_ACCOUNT_KEY,
            AZURE_STORAGE_CONTAINER_NAME,
        )
    logger.info(
        "Catalog Service: Azure environment variables **NOT SET**, using in-memory blob store."
    )
    return InMemoryBlobStore()
