"""Reading baseline/enhanced samples from files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, List, Optional, Tuple, Union

import pandas as pd

from .errors import InvalidInputError

logger = logging.getLogger(__name__)

PathOrBuffer = Union[str, Path, IO[str]]


def _numeric_values(series: pd.Series, name: str) -> List[float]:
    values = series.dropna()
    numeric = pd.to_numeric(values, errors="coerce")
    bad = values[numeric.isna()]
    if len(bad):
        raise InvalidInputError(f"column {name!r} has a non-numeric value: {bad.iloc[0]!r}")
    return [float(v) for v in numeric]


def _read_csv(source: PathOrBuffer) -> pd.DataFrame:
    try:
        return pd.read_csv(source)
    except OSError as e:
        raise InvalidInputError(f"cannot read {source}: {e}") from e
    except UnicodeDecodeError as e:
        raise InvalidInputError(f"{source} is not UTF-8 text: {e}") from e
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        raise InvalidInputError(f"cannot parse CSV input: {e}") from e


def _split_wide(
    df: pd.DataFrame,
    baseline_column: Optional[str],
    enhanced_column: Optional[str],
) -> Tuple[List[float], List[float]]:
    if baseline_column is None or enhanced_column is None:
        if len(df.columns) < 2:
            raise InvalidInputError(f"expected at least two columns, got {list(df.columns)}")
        baseline_column = baseline_column or df.columns[0]
        enhanced_column = enhanced_column or df.columns[1]

    for col in (baseline_column, enhanced_column):
        if col not in df.columns:
            raise InvalidInputError(f"column {col!r} not found (available: {list(df.columns)})")

    return (
        _numeric_values(df[baseline_column], str(baseline_column)),
        _numeric_values(df[enhanced_column], str(enhanced_column)),
    )


def _split_long(df: pd.DataFrame, group_column: str, value_column: str) -> Tuple[List[float], List[float]]:
    for col in (group_column, value_column):
        if col not in df.columns:
            raise InvalidInputError(f"column {col!r} not found (available: {list(df.columns)})")

    labels = list(df[group_column].dropna().unique())
    if len(labels) < 2:
        raise InvalidInputError(f"column {group_column!r} needs two groups, found {labels}")
    if len(labels) > 2:
        logger.warning("ignoring groups %s; comparing %r against %r", labels[2:], labels[0], labels[1])

    baseline_label, enhanced_label = labels[0], labels[1]
    return (
        _numeric_values(df.loc[df[group_column] == baseline_label, value_column], str(baseline_label)),
        _numeric_values(df.loc[df[group_column] == enhanced_label, value_column], str(enhanced_label)),
    )


def load_samples(
    source: PathOrBuffer,
    baseline_column: Optional[str] = None,
    enhanced_column: Optional[str] = None,
    group_column: Optional[str] = None,
    value_column: str = "value",
) -> Tuple[List[float], List[float]]:
    """Load (baseline, enhanced) samples from a CSV file or buffer.

    Two layouts are supported:
      - wide: one column per sample (the first two columns unless named);
        empty cells are dropped per column
      - long: ``group_column`` holds the sample label and ``value_column``
        the value; the first label seen is the baseline, the second the
        enhanced sample
    """
    df = _read_csv(source)
    if group_column is not None:
        baseline, enhanced = _split_long(df, group_column, value_column)
    else:
        baseline, enhanced = _split_wide(df, baseline_column, enhanced_column)
    logger.debug("loaded %d baseline and %d enhanced values", len(baseline), len(enhanced))
    return baseline, enhanced


def load_sample_file(path: Union[str, Path]) -> List[float]:
    """Load a line-delimited sample; blank lines and ``#`` comments are skipped."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise InvalidInputError(f"cannot read {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise InvalidInputError(f"{path} is not UTF-8 text: {e}") from e

    values: List[float] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.split("#", 1)[0].strip()
        if not line:
            continue
        try:
            values.append(float(line))
        except ValueError:
            raise InvalidInputError(f"{path}:{lineno}: not a number: {line!r}") from None
    return values
