#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Row filters for the booking tables. Each filter takes a frame, a column and
a value and returns the matching rows, so that several can be chained with
`filter_dataframe`."""

from typing import Any, Protocol, runtime_checkable

import polars as pl


@runtime_checkable
class DataframeFilterMethodType(Protocol):
    """Signature shared by the row filters below."""

    def __call__(
        self,
        dataframe: pl.DataFrame,
        column_name: str,
        value: Any,
    ) -> pl.DataFrame: ...


def exact_match_filter_dataframe(
    dataframe: pl.DataFrame, column_name: str, value: Any
) -> pl.DataFrame:
    """Keep the rows where `column_name` equals `value`. A `None` value selects
    the rows where the column is null."""
    if value is None:
        return dataframe.filter(pl.col(column_name).is_null())
    return dataframe.filter(pl.col(column_name) == value)


def exclude_filter_dataframe(
    dataframe: pl.DataFrame, column_name: str, value: Any
) -> pl.DataFrame:
    return dataframe.filter(pl.col(column_name) != value)


def gt_eq_filter_dataframe(
    dataframe: pl.DataFrame, column_name: str, value: Any
) -> pl.DataFrame:
    """Keep the rows at or after the inclusive lower bound `value`."""
    return dataframe.filter(pl.col(column_name) >= value)


def lt_filter_dataframe(
    dataframe: pl.DataFrame, column_name: str, value: Any
) -> pl.DataFrame:
    """Keep the rows strictly before `value`, the excluded upper bound of a
    half-open range such as a local day."""
    return dataframe.filter(pl.col(column_name) < value)


def filter_dataframe(
    dataframe: pl.DataFrame,
    filter_criteria: list[tuple[str, Any, DataframeFilterMethodType]],
) -> pl.DataFrame:
    """Apply several row filters in turn.

    Parameters
    ----------
    dataframe
        The rows to select from.
    filter_criteria
        `(column_name, value, filter_method)` triples, applied in order.

    Raises
    ------
    ValueError if no criteria are given.
    """
    if not filter_criteria:
        raise ValueError("At least one filter criterion should be provided")
    for column_name, value, filter_method in filter_criteria:
        dataframe = filter_method(
            dataframe=dataframe, column_name=column_name, value=value
        )
    return dataframe
