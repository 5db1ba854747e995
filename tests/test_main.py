# tests/test_main.py

"""
Integration tests for the Catalog Service API.
These tests make HTTP requests to the FastAPI application through TestClient.
Each test gets a fresh in-memory blob store, injected by overriding the
`get_catalog_service` dependency, so no state leaks between tests.
"""

import itertools
import json
import logging

import pytest
from fastapi.testclient import TestClient

from product_catalog.blob_store import InMemoryBlobStore
from product_catalog.main import CATALOG_PATH, app, get_catalog_service
from product_catalog.service import BLOB_NAME, CatalogService

# Suppress noisy logs during tests for cleaner output
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logging.getLogger("product_catalog.main").setLevel(logging.WARNING)


# --- Pytest Fixtures ---
@pytest.fixture
def blob_store():
    return InMemoryBlobStore()


@pytest.fixture
def catalog_service(blob_store):
    ids = itertools.count(1000)
    return CatalogService(blob_store, id_factory=lambda: str(next(ids)))


@pytest.fixture
def client(catalog_service):
    """
    Provides a TestClient whose catalog endpoint is backed by the test's
    own service and blob store.
    """
    app.dependency_overrides[get_catalog_service] = lambda: catalog_service
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_catalog_service, None)


def serve(service):
    app.dependency_overrides[get_catalog_service] = lambda: service
    return TestClient(app)


@pytest.fixture(autouse=True)
def clear_overrides():
    yield
    app.dependency_overrides.pop(get_catalog_service, None)


def create(client, **fields):
    data = {"name": "Pearl Drop", "price": 499, "category": "earrings"}
    data.update(fields)
    response = client.post(CATALOG_PATH, json=data)
    assert response.status_code == 201
    return response.json()


def test_read_root(client: TestClient):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Welcome to the Catalog Service!"}


def test_health_check(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "catalog-service"}


def test_list_products_without_blob_is_empty(client: TestClient):
    response = client.get(CATALOG_PATH)
    assert response.status_code == 200
    assert response.json() == []


def test_list_products_with_corrupt_blob_is_empty(client, blob_store):
    blob_store.upload(BLOB_NAME, b"{not json", "application/json")
    response = client.get(CATALOG_PATH)
    assert response.status_code == 200
    assert response.json() == []


def test_create_product_success(client: TestClient):
    """
    Tests successful creation of a product and that it shows up in the listing.
    """
    test_data = {
        "name": "Silver Anklet",
        "price": 1299,
        "offerPrice": 999,
        "images": ["/assets/anklet1.jpg", "/assets/anklet2.jpg"],
        "category": "anklets",
        "description": "Light silver anklet",
        "stock": 8,
    }
    response = client.post(CATALOG_PATH, json=test_data)

    assert response.status_code == 201
    created = response.json()
    assert created["id"]
    for key, value in test_data.items():
        assert created[key] == value

    listed = client.get(CATALOG_PATH).json()
    assert created in listed


def test_create_product_applies_defaults(client: TestClient):
    created = create(client, images="not-a-list", stock="7")
    assert created["images"] == []
    assert created["description"] == ""
    assert created["stock"] == 0
    assert "offerPrice" not in created


def test_create_product_coerces_numbers(client: TestClient):
    created = create(client, price="12.5", offerPrice="10", stock=3.9)
    assert created["price"] == 12.5
    assert created["offerPrice"] == 10
    assert created["stock"] == 3


def test_create_product_negative_stock_defaults_to_zero(client: TestClient):
    assert create(client, stock=-4)["stock"] == 0


@pytest.mark.parametrize("missing", ["name", "price", "category"])
def test_create_product_missing_required_field(client, blob_store, missing):
    """
    Tests product creation with a missing required field, expecting a 400
    and no write to the blob store.
    """
    data = {"name": "Ring", "price": 10, "category": "rings"}
    del data[missing]
    response = client.post(CATALOG_PATH, json=data)
    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields"}

    assert blob_store.upload_count == 0
    assert client.get(CATALOG_PATH).json() == []


def test_create_product_zero_price_is_rejected(client: TestClient):
    response = client.post(
        CATALOG_PATH, json={"name": "Free", "price": 0, "category": "rings"}
    )
    assert response.status_code == 400


def test_create_product_zero_price_string_is_kept(client: TestClient):
    # only a falsy value counts as missing; the text "0" is a price of zero
    assert create(client, price="0")["price"] == 0


def test_create_product_non_numeric_price_is_rejected(client, blob_store):
    response = client.post(
        CATALOG_PATH, json={"name": "Odd", "price": "cheap", "category": "rings"}
    )
    assert response.status_code == 400
    assert "price" in response.json()["error"]
    assert blob_store.upload_count == 0


def test_create_product_invalid_json_body(client: TestClient):
    response = client.post(
        CATALOG_PATH,
        content=b"{broken",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400


def test_sequential_creates_round_trip(client: TestClient):
    created = [create(client, name=f"Bangle {i}") for i in range(5)]
    listed = client.get(CATALOG_PATH).json()
    assert {p["id"] for p in listed} == {p["id"] for p in created}
    assert [p["id"] for p in listed] == [p["id"] for p in created]


def test_snapshot_is_stored_as_json(client, blob_store):
    created = create(client)
    assert blob_store.list(BLOB_NAME)[0].content_type == "application/json"
    assert json.loads(blob_store.fetch(BLOB_NAME)) == [created]


def test_update_product_partial(client: TestClient):
    """
    Tests partial update of a product; untouched fields keep their values.
    """
    original = create(client, description="Original Desc", stock=10)

    response = client.put(
        CATALOG_PATH, json={"id": original["id"], "updates": {"name": "Renamed"}}
    )
    assert response.status_code == 200
    assert response.json() == {**original, "name": "Renamed"}

    listed = client.get(CATALOG_PATH).json()
    assert listed == [{**original, "name": "Renamed"}]


def test_update_product_keeps_id(client: TestClient):
    original = create(client)
    response = client.put(
        CATALOG_PATH,
        json={"id": original["id"], "updates": {"id": "hijacked", "stock": 2}},
    )
    assert response.status_code == 200
    assert response.json()["id"] == original["id"]
    assert response.json()["stock"] == 2


@pytest.mark.parametrize(
    "body",
    [{}, {"id": "1"}, {"updates": {"name": "x"}}, {"id": "", "updates": {}}],
)
def test_update_product_requires_id_and_updates(client, body):
    response = client.put(CATALOG_PATH, json=body)
    assert response.status_code == 400
    assert response.json() == {"error": "id and updates are required"}


def test_update_product_not_found(client: TestClient):
    create(client)
    response = client.put(
        CATALOG_PATH, json={"id": "999999", "updates": {"name": "Ghost"}}
    )
    assert response.status_code == 404
    assert response.json() == {"error": "Not found"}


def test_update_product_updates_must_be_an_object(client, blob_store):
    original = create(client)
    response = client.put(CATALOG_PATH, json={"id": original["id"], "updates": "name"})
    assert response.status_code == 400
    assert response.json()["error"].startswith("updates:")
    assert blob_store.upload_count == 1


def test_update_product_rejects_non_finite_numbers(client, blob_store):
    """
    NaN cannot be written to a JSON snapshot; the update is refused and the
    catalog stays readable.
    """
    original = create(client)
    response = client.put(
        CATALOG_PATH,
        content=f'{{"id": "{original["id"]}", "updates": {{"price": NaN}}}}'.encode(),
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert "finite" in response.json()["error"]
    assert blob_store.upload_count == 1

    listed = client.get(CATALOG_PATH)
    assert listed.status_code == 200
    assert listed.json() == [original]


def test_create_product_rejects_infinite_price(client, blob_store):
    response = client.post(
        CATALOG_PATH,
        content=b'{"name": "Ring", "price": Infinity, "category": "rings"}',
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert "price" in response.json()["error"]
    assert blob_store.upload_count == 0


def test_list_products_with_non_finite_snapshot_is_empty(client, blob_store):
    blob_store.upload(BLOB_NAME, b'[{"id": "1", "price": NaN}]', "application/json")
    response = client.get(CATALOG_PATH)
    assert response.status_code == 200
    assert response.json() == []


def test_delete_product_success(client: TestClient):
    keep = create(client, name="Keep")
    drop = create(client, name="Drop")

    response = client.request("DELETE", CATALOG_PATH, json={"id": drop["id"]})
    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert client.get(CATALOG_PATH).json() == [keep]


def test_delete_product_not_found_is_noop(client: TestClient):
    existing = create(client)
    response = client.request("DELETE", CATALOG_PATH, json={"id": "999999"})
    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert client.get(CATALOG_PATH).json() == [existing]


def test_delete_product_requires_id(client: TestClient):
    response = client.request("DELETE", CATALOG_PATH, json={})
    assert response.status_code == 400
    assert response.json() == {"error": "id is required"}


def test_delete_product_without_body(client, blob_store):
    response = client.delete(CATALOG_PATH)
    assert response.status_code == 400
    assert "error" in response.json()
    assert blob_store.upload_count == 0


def test_each_mutation_writes_once(client, blob_store):
    product = create(client)
    client.put(CATALOG_PATH, json={"id": product["id"], "updates": {"stock": 1}})
    client.request("DELETE", CATALOG_PATH, json={"id": product["id"]})
    client.get(CATALOG_PATH)
    assert blob_store.upload_count == 3


def test_unsupported_method(client: TestClient):
    response = client.patch(CATALOG_PATH, json={"id": "1"})
    assert response.status_code == 405
    assert response.json() == {"error": "Method Not Allowed"}


def test_unknown_path_is_404(client: TestClient):
    assert client.get("/api/unknown").status_code == 404


def test_options_returns_empty_ok(client: TestClient):
    response = client.options(CATALOG_PATH)
    assert response.status_code == 200
    assert response.content == b""


def test_cors_preflight(client: TestClient):
    response = client.options(
        CATALOG_PATH,
        headers={
            "Origin": "https://shop.example",
            "Access-Control-Request-Method": "PUT",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert "PUT" in response.headers["access-control-allow-methods"]


def test_cors_header_on_simple_request(client: TestClient):
    response = client.get(CATALOG_PATH, headers={"Origin": "https://shop.example"})
    assert response.headers["access-control-allow-origin"] == "*"


class FailingUploadStore(InMemoryBlobStore):
    def upload(self, pathname, data, content_type):
        raise RuntimeError("storage offline")


def test_write_failure_returns_internal_error(catalog_service):
    catalog_service.store = FailingUploadStore()
    with serve(catalog_service) as test_client:
        response = test_client.post(
            CATALOG_PATH, json={"name": "Ring", "price": 10, "category": "rings"}
        )
    assert response.status_code == 500
    assert response.json() == {"error": "storage offline"}


class ExplodingService(CatalogService):
    def list_products(self):
        raise RuntimeError("boom")


class NonFiniteService(CatalogService):
    def list_products(self):
        return [{"id": "1", "price": float("nan")}]


def test_list_failure_returns_internal_error(blob_store):
    with serve(ExplodingService(blob_store)) as test_client:
        response = test_client.get(CATALOG_PATH)
    assert response.status_code == 500
    assert response.json() == {"error": "boom"}


def test_unencodable_result_returns_internal_error(blob_store):
    with serve(NonFiniteService(blob_store)) as test_client:
        response = test_client.get(CATALOG_PATH)
    assert response.status_code == 500
    assert response.json()["error"]
