"""
Warehouse query layer.

Wraps the BigQuery client behind a small async interface so that the
reconciliation and aggregation services only ever see a ``Warehouse``:
something that runs a named, parameterised query and hands back plain
``dict`` rows. Tests swap in a fake through the ``get_warehouse`` dependency.
"""

import asyncio
import datetime
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

from fastapi import Request
from google.api_core.exceptions import GoogleAPIError
from google.cloud import bigquery

from .config import WAREHOUSE_LOCATION, WAREHOUSE_PROJECT
from .exceptions import DataSourceError

logger = logging.getLogger(__name__)

TabularRow = dict[str, Any]


@dataclass(frozen=True)
class WarehouseQuery:
    """A named SQL statement. Request values go in as bound parameters, never into ``sql``."""
    name: str
    sql: str


class Warehouse(Protocol):
    async def run(self, query: WarehouseQuery, params: Optional[Mapping[str, Any]] = None) -> list[TabularRow]:
        ...


def _parameter_type(value: Any) -> str:
    # bool before int, bool is an int subclass
    if isinstance(value, bool):
        return "BOOL"
    if isinstance(value, int):
        return "INT64"
    if isinstance(value, float):
        return "FLOAT64"
    if isinstance(value, datetime.datetime):
        return "DATETIME"
    if isinstance(value, datetime.date):
        return "DATE"
    return "STRING"


def build_query_parameters(params: Optional[Mapping[str, Any]]) -> list[bigquery.ScalarQueryParameter]:
    if not params:
        return []
    return [
        bigquery.ScalarQueryParameter(name, _parameter_type(value), value)
        for name, value in params.items()
    ]


class BigQueryWarehouse:
    """Long-lived, read-only handle on a BigQuery client."""

    def __init__(self, client: bigquery.Client, location: Optional[str] = None):
        self._client = client
        self._location = location

    @classmethod
    def from_config(cls) -> "BigQueryWarehouse":
        client = bigquery.Client(project=WAREHOUSE_PROJECT, location=WAREHOUSE_LOCATION)
        return cls(client, location=WAREHOUSE_LOCATION)

    async def run(self, query: WarehouseQuery, params: Optional[Mapping[str, Any]] = None) -> list[TabularRow]:
        job_config = bigquery.QueryJobConfig(query_parameters=build_query_parameters(params))
        logger.info(f"Running warehouse query '{query.name}' with params {dict(params or {})}")
        try:
            job = await asyncio.to_thread(
                self._client.query, query.sql, job_config=job_config, location=self._location
            )
        except GoogleAPIError as e:
            logger.error(f"Warehouse query '{query.name}' could not be submitted: {e}")
            raise DataSourceError(str(e), query.name) from e

        try:
            rows = await asyncio.to_thread(self._fetch_rows, job)
        except asyncio.CancelledError:
            # The caller went away (or a sibling query failed); stop paying for this job.
            logger.info(f"Cancelling warehouse job {job.job_id} for '{query.name}'")
            try:
                job.cancel()
            except GoogleAPIError as e:
                logger.warning(f"Could not cancel warehouse job {job.job_id}: {e}")
            raise
        except GoogleAPIError as e:
            logger.error(f"Warehouse query '{query.name}' failed: {e}")
            raise DataSourceError(str(e), query.name) from e

        logger.info(f"Warehouse query '{query.name}' returned {len(rows)} rows")
        return rows

    @staticmethod
    def _fetch_rows(job: bigquery.QueryJob) -> list[TabularRow]:
        return [dict(row.items()) for row in job.result()]

    def close(self) -> None:
        self._client.close()


def get_warehouse(request: Request) -> Warehouse:
    """FastAPI dependency returning the warehouse opened in the app lifespan."""
    return request.app.state.warehouse
