"""
Unit tests for the REST pricing catalog client.
"""

from unittest.mock import Mock

import pytest
import requests

from barndo.domain.exceptions import CatalogError
from barndo.domain.models import FormulaType, UnitType
from barndo.domain.models.config import CatalogConfig
from barndo.infrastructure.catalog.rest_catalog_client import RestCatalogClient, build_session

CATEGORY_ROWS = [
    {"id": 1, "name": "Concrete", "sort_order": 1},
    {"id": 2, "name": "Trusses", "sort_order": 2},
]

ITEM_ROWS = [
    {
        "id": 10, "name": '4" Concrete Slab', "category_id": 1, "base_price": "6.50",
        "unit_type": "sq ft", "is_active": True, "sort_order": 1,
    },
    {
        "id": 11, "name": "Scissor Truss", "category_id": 2, "base_price": 85,
        "unit_type": "each", "formula_type": "scissor_truss", "has_formula": True, "sort_order": 2,
    },
]


def response(payload, status=200):
    resp = Mock()
    resp.json.return_value = payload
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return resp


@pytest.fixture
def config():
    return CatalogConfig(url="https://catalog.example.com/rest/v1/", api_key="secret")


@pytest.fixture
def http():
    session = Mock()
    session.get.side_effect = lambda url, **kwargs: response(
        CATEGORY_ROWS if url.endswith("price_categories") else ITEM_ROWS
    )
    return session


class TestBuildSession:
    """Test HTTP session setup"""

    def test_api_key_headers(self, config):
        session = build_session(config)
        assert session.headers["apikey"] == "secret"
        assert session.headers["Authorization"] == "Bearer secret"

    def test_retries_mounted(self, config):
        adapter = build_session(config).get_adapter("https://catalog.example.com")
        assert adapter.max_retries.total == 3

    def test_no_key_no_auth_header(self):
        session = build_session(CatalogConfig(api_key=""))
        assert "Authorization" not in session.headers


class TestRestCatalogClient:
    """Test catalog loading"""

    def test_list_categories(self, config, http):
        client = RestCatalogClient(config, session=http)
        categories = client.list_categories()

        assert [c.name for c in categories] == ["Concrete", "Trusses"]
        url = http.get.call_args.args[0]
        assert url == "https://catalog.example.com/rest/v1/price_categories"
        assert http.get.call_args.kwargs["params"]["order"] == "sort_order"

    def test_list_items_resolves_categories(self, config, http):
        """Test items come back with category names and formula metadata"""
        items = RestCatalogClient(config, session=http).list_items()

        assert [i.category for i in items] == ["Concrete", "Trusses"]
        assert items[0].unit_type is UnitType.SQ_FT
        assert items[0].base_price == 6.5
        assert items[1].formula_type is FormulaType.SCISSOR_TRUSS

        params = http.get.call_args.kwargs["params"]
        assert params["is_active"] == "eq.true"

    def test_invalid_rows_skipped(self, config, http):
        rows = ITEM_ROWS + [{"id": 12, "name": "Broken", "category_id": 1, "base_price": -5}]
        http.get.side_effect = lambda url, **kwargs: response(
            CATEGORY_ROWS if url.endswith("price_categories") else rows
        )
        items = RestCatalogClient(config, session=http).list_items()
        assert [i.id for i in items] == ["10", "11"]

    def test_http_error(self, config):
        http = Mock()
        http.get.return_value = response({}, status=503)

        with pytest.raises(CatalogError):
            RestCatalogClient(config, session=http).list_categories()

    def test_connection_error(self, config):
        http = Mock()
        http.get.side_effect = requests.ConnectionError("unreachable")

        with pytest.raises(CatalogError) as exc_info:
            RestCatalogClient(config, session=http).list_items()
        assert "price_categories" in exc_info.value.details["source"]

    def test_non_json_body(self, config):
        resp = Mock()
        resp.json.side_effect = ValueError("Expecting value")
        http = Mock()
        http.get.return_value = resp

        with pytest.raises(CatalogError):
            RestCatalogClient(config, session=http).list_categories()

    def test_non_list_body(self, config):
        http = Mock()
        http.get.return_value = response({"message": "not found"})

        with pytest.raises(CatalogError):
            RestCatalogClient(config, session=http).list_categories()
