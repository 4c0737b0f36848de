"""
Root conftest for the pytest test suite.

This file contains the main fixtures that are used across the entire test suite.

No test talks to BigQuery. The application reads its warehouse handle through
the ``get_warehouse`` dependency, which is overridden here with a
``FakeWarehouse`` that serves canned rows per query name.

Key Fixtures:
- `warehouse`: An empty `FakeWarehouse`; tests load rows or errors into it.
- `app_for_testing`: Provides the FastAPI application instance with its production
  lifespan disabled and the warehouse dependency pointed at the fake.
- `client`: Provides a TestClient for the app.
"""

from contextlib import asynccontextmanager
from typing import Any, Generator, Mapping, Optional

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from sku_analytics.core.warehouse import WarehouseQuery, get_warehouse

# Import the app
from sku_analytics.main import app as actual_app


class FakeWarehouse:
    """
    Stands in for ``BigQueryWarehouse``.

    ``rows`` maps a query name to the rows it returns, ``errors`` maps a query
    name to the exception it raises. Queries with neither return no rows.
    Every call is recorded in ``calls`` as ``(query_name, params)``.
    """

    def __init__(self, rows: Optional[dict] = None, errors: Optional[dict] = None):
        self.rows: dict[str, list[dict]] = dict(rows or {})
        self.errors: dict[str, Exception] = dict(errors or {})
        self.calls: list[tuple[str, dict]] = []
        self.closed = False

    async def run(self, query: WarehouseQuery, params: Optional[Mapping[str, Any]] = None) -> list[dict]:
        self.calls.append((query.name, dict(params or {})))
        if query.name in self.errors:
            raise self.errors[query.name]
        return [dict(row) for row in self.rows.get(query.name, [])]

    def params_for(self, query_name: str) -> dict:
        return next(params for name, params in self.calls if name == query_name)

    def close(self) -> None:
        self.closed = True


@pytest.fixture(scope="function")
def warehouse() -> FakeWarehouse:
    return FakeWarehouse()


@pytest.fixture(scope="function")
def app_for_testing(warehouse: FakeWarehouse) -> Generator[FastAPI, Any, None]:
    """
    Provides a FastAPI application instance for testing, with its
    production lifespan manager disabled so no BigQuery client is created,
    and the warehouse dependency overridden with the fake.
    """
    original_lifespan = actual_app.router.lifespan_context

    @asynccontextmanager
    async def dummy_lifespan(app: FastAPI):
        yield

    actual_app.router.lifespan_context = dummy_lifespan
    actual_app.dependency_overrides[get_warehouse] = lambda: warehouse

    yield actual_app

    # Restore the original lifespan context after the test
    actual_app.router.lifespan_context = original_lifespan
    actual_app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(app_for_testing: FastAPI) -> Generator[TestClient, Any, None]:
    """
    Provides a starlette TestClient.
    """
    with TestClient(app_for_testing) as tc:
        yield tc
