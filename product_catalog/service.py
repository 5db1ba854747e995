# product_catalog/service.py

"""
Catalog Service: CRUD over a single JSON snapshot held in the Blob Store.

Every mutating operation reads the whole snapshot, computes the next snapshot
in memory and uploads it in one write. There is no locking or compare-and-swap,
so concurrent writers race and the last upload wins.
"""
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .blob_store import BlobStore
from .exceptions import NotFoundError, ValidationError
from .ids import TimestampIdGenerator
from .schemas import Product, ProductCreate, ProductDeleteRequest, ProductUpdateRequest

logger = logging.getLogger(__name__)

BLOB_NAME = os.getenv("CATALOG_BLOB_NAME", "products.json")
CONTENT_TYPE = "application/json"

FOUND = "found"
MISSING = "missing"
FAILED = "failed"


@dataclass
class SnapshotRead:
    """Outcome of reading the snapshot; callers decide the fallback."""

    status: str
    products: List[dict] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == FOUND


def _reject_constant(name):
    # NaN and Infinity are not JSON; a snapshot holding them is unreadable
    raise ValueError(f"snapshot contains non-finite number {name}")


class CatalogService:
    def __init__(
        self,
        store: BlobStore,
        blob_name: str = BLOB_NAME,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.store = store
        self.blob_name = blob_name
        self._next_id = id_factory or TimestampIdGenerator()

    # --- Snapshot I/O -----------------------------------------------------

    def read_snapshot(self) -> SnapshotRead:
        try:
            match = next(
                (b for b in self.store.list(self.blob_name) if b.pathname == self.blob_name),
                None,
            )
            if match is None:
                return SnapshotRead(MISSING)
            data = json.loads(
                self.store.fetch(match.pathname), parse_constant=_reject_constant
            )
        except Exception as e:
            return SnapshotRead(FAILED, error=str(e) or e.__class__.__name__)
        if not isinstance(data, list):
            return SnapshotRead(FAILED, error="snapshot is not a JSON array")
        return SnapshotRead(FOUND, products=data)

    def _load(self) -> List[dict]:
        snapshot = self.read_snapshot()
        if snapshot.status == FAILED:
            logger.warning(
                f"Could not read catalog snapshot '{self.blob_name}', treating as empty: {snapshot.error}"
            )
        return snapshot.products

    def _write(self, products: List[dict]) -> None:
        body = json.dumps(products, allow_nan=False).encode("utf-8")
        info = self.store.upload(self.blob_name, body, CONTENT_TYPE)
        logger.info(f"Wrote catalog snapshot with {len(products)} products to {info.url}.")

    # --- Operations -------------------------------------------------------

    def list_products(self) -> List[dict]:
        return self._load()

    def create_product(self, request: ProductCreate) -> dict:
        if request.name is None or request.price is None or request.category is None:
            raise ValidationError("Missing required fields")

        products = self._load()
        product = Product(id=self._next_id(), **request.model_dump()).to_record()

        self._write(products + [product])
        logger.info(f"Product '{product['name']}' (ID: {product['id']}) created.")
        return product

    def update_product(self, request: ProductUpdateRequest) -> dict:
        if request.id is None or request.updates is None:
            raise ValidationError("id and updates are required")

        products = self._load()
        index = next(
            (i for i, p in enumerate(products) if p.get("id") == request.id), None
        )
        if index is None:
            logger.warning(f"Product with ID: {request.id} not found for update.")
            raise NotFoundError()

        # ids are immutable, so an id inside updates is dropped
        updates = {k: v for k, v in request.updates.items() if k != "id"}
        merged = {**products[index], **updates}
        next_products = list(products)
        next_products[index] = merged
        self._write(next_products)
        logger.info(f"Product (ID: {request.id}) updated.")
        return merged

    def delete_product(self, request: ProductDeleteRequest) -> dict:
        if request.id is None:
            raise ValidationError("id is required")

        products = self._load()
        self._write([p for p in products if p.get("id") != request.id])
        logger.info(f"Product (ID: {request.id}) deleted.")
        return {"ok": True}
