from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, NamedTuple, Sequence

from .models.line_item import LineItem

logger = logging.getLogger(__name__)


class ParseMode(str, Enum):
    individual = "individual"
    two_file = "2-file"
    three_file = "3-file"
    two_file_price_reference = "2-file+price-reference"

    @classmethod
    def parse(cls, value: "str | ParseMode | None") -> "ParseMode":
        """Accept the enum values as well as the labels used by the upload screen."""
        if isinstance(value, ParseMode):
            return value
        if not value:
            return cls.individual
        text = value.strip()
        mode = _MODE_LABELS.get(text)
        if mode is not None:
            return mode
        return cls(text)


_MODE_LABELS: dict[str, ParseMode] = {
    "個別解析": ParseMode.individual,
    "2ファイル統合": ParseMode.two_file,
    "3ファイル統合": ParseMode.three_file,
    "2ファイル+価格参考": ParseMode.two_file_price_reference,
}


class MergeKey(NamedTuple):
    model_number: str
    name: str

    @classmethod
    def of(cls, row: LineItem) -> "MergeKey":
        return cls(row.model_number, row.name)


def required_file_count(mode: ParseMode) -> int | None:
    """Exact number of files a mode needs, or ``None`` when any count is accepted."""
    if mode in (ParseMode.two_file, ParseMode.two_file_price_reference):
        return 2
    if mode is ParseMode.three_file:
        return 3
    return None


def _merge_into(existing: LineItem, row: LineItem) -> LineItem:
    # Price recombines each source at its own unit price; the merged row keeps
    # the first source's unit price.
    return existing.model_copy(
        update={
            "quantity": existing.quantity + row.quantity,
            "price": (existing.unit_price * existing.quantity) + (row.unit_price * row.quantity),
            "weight": (existing.weight or 0.0) + (row.weight or 0.0),
        }
    )


def _mode_label(mode: ParseMode | str | None) -> str:
    try:
        return ParseMode.parse(mode).value
    except ValueError:
        return str(mode)


def merge_file_results(results: Sequence[Sequence[LineItem]], mode: ParseMode | str = ParseMode.two_file) -> list[LineItem]:
    """Combine rows parsed from several files, folding rows that share model number and name.

    Rows keep the order in which their key was first seen. A single result set
    is returned as-is. The mode only labels the log entry.
    """
    if not results:
        return []
    if len(results) == 1:
        return list(results[0])

    merged: dict[MergeKey, LineItem] = {}
    duplicates = 0
    for rows in results:
        for row in rows:
            key = MergeKey.of(row)
            existing = merged.get(key)
            if existing is None:
                merged[key] = row.model_copy()
            else:
                merged[key] = _merge_into(existing, row)
                duplicates += 1

    logger.info(
        "Merged parsed files",
        extra={
            "mode": _mode_label(mode),
            "files": len(results),
            "rows_in": sum(len(rows) for rows in results),
            "rows_out": len(merged),
            "duplicates": duplicates,
        },
    )
    return list(merged.values())


def apply_price_reference(rows: Iterable[LineItem], reference_rows: Iterable[LineItem]) -> list[LineItem]:
    """Overwrite unit prices with positive prices from a reference file."""
    reference_prices: dict[MergeKey, float] = {}
    for ref in reference_rows:
        reference_prices[MergeKey.of(ref)] = ref.unit_price

    applied: list[LineItem] = []
    for row in rows:
        reference_price = reference_prices.get(MergeKey.of(row))
        if reference_price is not None and reference_price > 0:
            applied.append(
                row.model_copy(update={"unit_price": reference_price, "price": reference_price * row.quantity})
            )
        else:
            applied.append(row)
    return applied


def combine_parsed_files(results: Sequence[Sequence[LineItem]], mode: ParseMode | str) -> list[LineItem]:
    """Turn per-file parse results into one table according to the upload mode."""
    mode = ParseMode.parse(mode)
    if mode in (ParseMode.two_file, ParseMode.three_file):
        return merge_file_results(results, mode)
    if mode is ParseMode.two_file_price_reference:
        main_rows = merge_file_results(results[:1], mode)
        reference = results[1] if len(results) > 1 else []
        return apply_price_reference(main_rows, reference)
    return list(results[0]) if results else []


__all__ = [
    "MergeKey",
    "ParseMode",
    "apply_price_reference",
    "combine_parsed_files",
    "merge_file_results",
    "required_file_count",
]
