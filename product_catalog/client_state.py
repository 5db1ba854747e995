# product_catalog/client_state.py

"""
Client-side catalog state for the storefront.

CatalogState holds the visible product list and keeps it in step with the
Catalog Service on a best-effort basis:

- `sync()` loads the catalog from the service, falling back to the local
  cache and then to the bundled default catalog.
- Mutations are optimistic. Local state changes first and is never rolled
  back when the service call fails; each record carries a SyncState saying
  whether the service has confirmed it.
- Every change is written through to the local cache.
"""
import logging
from enum import Enum
from typing import Callable, Dict, List, Optional

import httpx
import pydantic

from .api_client import CatalogApi
from .cache import LocalCache
from .default_catalog import DEFAULT_PRODUCTS
from .ids import TimestampIdGenerator
from .schemas import Product

logger = logging.getLogger(__name__)

Listener = Callable[[List[Product]], None]


class SyncState(str, Enum):
    LOCAL_ONLY = "local-only"
    SYNCING = "syncing"
    SYNCED = "synced"
    SYNC_FAILED = "sync-failed"


class LoadSource(str, Enum):
    SERVER = "server"
    CACHE = "cache"
    DEFAULT = "default"


# Stand-ins for required fields a non-conforming service record lacks
_PLACEHOLDER_FIELDS = {"id": "", "name": "", "price": 0, "category": ""}


def _parse_products(data) -> Optional[List[Product]]:
    """Strict parse used for the local cache: any bad record voids the list."""
    try:
        return [Product.model_validate(item) for item in data]
    except pydantic.ValidationError as e:
        logger.warning(f"Discarding malformed product list: {e.error_count()} errors")
        return None


def _accept_server_product(item: dict) -> Product:
    # The service is authoritative, so a record it holds is kept even when it
    # does not fit the schema (its shallow merge accepts any values).
    try:
        return Product.model_validate(item)
    except pydantic.ValidationError as e:
        logger.warning(
            f"Keeping non-conforming product {item.get('id')!r} from the service ({e.error_count()} issues)"
        )
        return Product.model_construct(**{**_PLACEHOLDER_FIELDS, **item})


def _accept_server_products(data: list) -> List[Product]:
    products = []
    for item in data:
        if not isinstance(item, dict):
            logger.warning("Skipping non-object entry in the service catalog")
            continue
        products.append(_accept_server_product(item))
    return products


def _merge(product: Product, updates: dict) -> Product:
    try:
        return Product.model_validate({**product.to_record(), **updates})
    except pydantic.ValidationError as e:
        # Local updates always apply; the record just stops matching the schema
        logger.warning(f"Update leaves product {product.id!r} non-conforming: {e.error_count()} issues")
        return product.model_copy(update=updates)


def _text(value) -> str:
    return str(value or "").lower()


class CatalogState:
    def __init__(
        self,
        api: CatalogApi,
        cache: LocalCache,
        default_products: Optional[List[dict]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self._api = api
        self._cache = cache
        self._next_local_id = id_factory or TimestampIdGenerator()
        self._listeners: List[Listener] = []

        defaults = DEFAULT_PRODUCTS if default_products is None else default_products
        self._defaults = [Product.model_validate(p) for p in defaults]
        self._products: List[Product] = list(self._defaults)
        self.loaded_from_server = False
        self.sync_states: Dict[str, SyncState] = {
            p.id: SyncState.LOCAL_ONLY for p in self._products
        }

        self.subscribe(self._persist)

    # --- State container ----------------------------------------------------

    @property
    def products(self) -> List[Product]:
        return list(self._products)

    @property
    def api_base(self) -> str:
        return self._api.api_base

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` with the new list after every change."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_products(self, products: List[Product]) -> None:
        self._products = products
        for listener in list(self._listeners):
            listener(list(products))

    def _persist(self, products: List[Product]) -> None:
        self._cache.save([p.to_record() for p in products])

    # --- Synchronization ----------------------------------------------------

    def sync(self) -> LoadSource:
        """
        Load the catalog: runtime config first (it may move the API), then
        the service, then the local cache. The default catalog stays when
        neither yields anything usable.
        """
        config = self._api.fetch_config()
        if config.ok and isinstance(config.data, dict):
            api_base = config.data.get("apiBase")
            if isinstance(api_base, str) and api_base:
                logger.info(f"Using API base from runtime config: {api_base}")
                self._api.api_base = api_base

        result = self._api.fetch_products()
        if result.ok and isinstance(result.data, list) and result.data:
            products = _accept_server_products(result.data)
            if products:
                self.loaded_from_server = True
                self.sync_states = {p.id: SyncState.SYNCED for p in products}
                self._set_products(products)
                logger.info(f"Loaded {len(products)} products from the service.")
                return LoadSource.SERVER

        self.loaded_from_server = False
        cached = self._cache.load()
        products = _parse_products(cached) if cached is not None else None
        if products is not None:
            self.sync_states = {p.id: SyncState.LOCAL_ONLY for p in products}
            self._set_products(products)
            logger.info(f"Restored {len(products)} products from the local cache.")
            return LoadSource.CACHE

        logger.info("Keeping the bundled default catalog.")
        return LoadSource.DEFAULT

    # --- Mutations ----------------------------------------------------------

    def add_product(self, data: dict) -> Product:
        """
        Create a product on the service and append the canonical record.
        If the service cannot be reached the record is kept locally under a
        generated id instead.
        """
        data = {k: v for k, v in data.items() if k != "id"}
        # Reject unusable input before any I/O
        Product.model_validate({**data, "id": "pending"})

        result = self._api.create_product(data)
        created = None
        if result.ok and isinstance(result.data, dict) and result.data.get("id"):
            created = _accept_server_product(result.data)

        if created is not None:
            state = SyncState.SYNCED
        else:
            created = Product.model_validate({**data, "id": self._next_local_id()})
            state = SyncState.LOCAL_ONLY
            logger.warning(
                f"Service did not accept new product, kept locally as {created.id}"
            )

        self.sync_states[created.id] = state
        self._set_products(self._products + [created])
        return created

    def update_product(self, product_id: str, updates: dict) -> Optional[Product]:
        updates = {k: v for k, v in updates.items() if k != "id"}
        updated = None
        next_products = []
        for product in self._products:
            if product.id == product_id:
                product = _merge(product, updates)
                updated = product
            next_products.append(product)
        self._set_products(next_products)

        previous = self.sync_states.get(product_id)
        if updated is not None:
            self.sync_states[product_id] = SyncState.SYNCING

        result = self._api.update_product(product_id, updates)
        if updated is None:
            return None
        if result.ok:
            self.sync_states[product_id] = SyncState.SYNCED
        elif previous == SyncState.LOCAL_ONLY:
            self.sync_states[product_id] = SyncState.LOCAL_ONLY
        else:
            self.sync_states[product_id] = SyncState.SYNC_FAILED
        return updated

    def delete_product(self, product_id: str) -> None:
        self._set_products([p for p in self._products if p.id != product_id])
        self.sync_states.pop(product_id, None)

        result = self._api.delete_product(product_id)
        if not result.ok:
            logger.warning(f"Delete of {product_id} not confirmed by the service: {result.error}")

    # --- Derived reads ------------------------------------------------------

    def get_product_by_id(self, product_id: str) -> Optional[Product]:
        return next((p for p in self._products if p.id == product_id), None)

    def get_products_by_category(self, category: str) -> List[Product]:
        return [p for p in self._products if p.category == category]

    def search_products(self, query: str) -> List[Product]:
        lower = query.lower()
        return [
            p
            for p in self._products
            if lower in _text(p.name)
            or lower in _text(p.description)
            or lower in _text(p.category)
        ]

    @property
    def categories(self) -> List[str]:
        return list(dict.fromkeys(p.category for p in self._products if p.category))


def build_catalog_state(base_url: str, cache: Optional[LocalCache] = None) -> CatalogState:
    """Wire a CatalogState against a storefront origin such as http://localhost:8000."""
    client = httpx.Client(base_url=base_url)
    return CatalogState(CatalogApi(client), cache or LocalCache())
