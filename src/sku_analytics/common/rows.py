"""Row decoding helpers shared by the features.

Warehouse rows arrive as loosely typed ``dict`` objects. Each feature declares
a pydantic record per source (subclassing ``WarehouseRecord``) and decodes the
rows once, at the boundary, with ``decode_rows``. Everything past that point
works on typed, immutable records.

The annotated types below carry the coercions every source needs:
``Count`` turns warehouse NULLs into 0 and ``SizeLabel`` applies the
half-size normalization so that rows from different sources collide on the
same key.
"""

from typing import Annotated, Any, Iterable, Mapping, Optional, TypeVar

from fastapi import Response
from pydantic import BaseModel, BeforeValidator, ConfigDict, ValidationError

from ..core.config import CACHE_MAX_AGE
from ..core.exceptions import DataSourceError

# Encoded half sizes as they appear in variant SKUs, mapped to their display form.
HALF_SIZE_LABELS: dict[str, str] = {
    "385": "38.5",
    "395": "39.5",
    "425": "42.5",
    "435": "43.5",
}


def normalize_size(label: Any) -> Optional[str]:
    """Map an encoded half size to its decimal form; blank labels become ``None``.

    Labels that are already normalized, or not in the table, pass through
    unchanged (whitespace included), so applying this twice is a no-op.
    """
    if label is None:
        return None
    text = str(label)
    if not text.strip():
        return None
    return HALF_SIZE_LABELS.get(text, text)


def _blank_to_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _null_to_zero(value: Any) -> Any:
    return 0 if value is None else value


Count = Annotated[int, BeforeValidator(_null_to_zero)]
SizeLabel = Annotated[Optional[str], BeforeValidator(normalize_size)]
StyleCode = Annotated[Optional[str], BeforeValidator(_blank_to_none)]


class WarehouseRecord(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


RecordT = TypeVar("RecordT", bound=WarehouseRecord)


def decode_rows(model: type[RecordT], rows: Iterable[Mapping[str, Any]], query_name: str) -> list[RecordT]:
    """Validate every row into ``model``; the first bad row aborts with ``DataSourceError``."""
    records = []
    for index, row in enumerate(rows):
        try:
            records.append(model.model_validate(row))
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise DataSourceError(f"Malformed row {index}: {problems}", query_name) from e
    return records


def set_cache_headers(response: Response) -> None:
    response.headers["Cache-Control"] = f"private, max-age={CACHE_MAX_AGE}"
