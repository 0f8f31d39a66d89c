"""Read delimited telemetry exports into raw header-named rows."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any

import pandas as pd

from balemetrics.harmonize.field_map import get_canonical_name

logger = logging.getLogger(__name__)

# Feedback flags are compared against the literal string "False", so these
# columns must not be converted to booleans.
STRING_FIELDS = {"valve_extend_feedback_ok", "valve_retract_feedback_ok"}


class IngestionError(Exception):
    """Base class for failures while reading a telemetry payload."""


class SourceUnavailableError(IngestionError):
    """The payload could not be read at all (missing file, permissions, ...)."""


class EmptyPayloadError(IngestionError):
    """The payload contains no data rows."""


class PayloadParseError(IngestionError):
    """The payload is not valid delimited text."""


def parse_csv_text(text: str) -> list[dict[str, Any]]:
    """Tokenize CSV text into typed rows (numbers and booleans are converted).

    Empty lines are skipped and empty cells become ``None``. Valve feedback
    columns are kept as text.
    """
    if not text or not text.strip():
        raise EmptyPayloadError("Empty CSV payload")

    try:
        header = pd.read_csv(io.StringIO(text), nrows=0).columns
        dtype = {c: str for c in header if get_canonical_name(str(c).strip()) in STRING_FIELDS}
        df = pd.read_csv(io.StringIO(text), skip_blank_lines=True, dtype=dtype)
    except pd.errors.EmptyDataError as e:
        raise EmptyPayloadError("Empty CSV payload") from e
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise PayloadParseError(f"Could not parse CSV payload: {e}") from e

    if df.empty:
        raise EmptyPayloadError("CSV payload has a header but no data rows")

    df.columns = [str(c).strip() for c in df.columns]
    df = df.astype(object).where(df.notna(), None)
    rows = df.to_dict(orient="records")
    logger.debug("Parsed %d rows with %d columns", len(rows), len(df.columns))
    return rows


def load_csv(path: Path) -> list[dict[str, Any]]:
    """Read a CSV file from disk and tokenize it."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise SourceUnavailableError(f"Cannot read telemetry file {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise PayloadParseError(f"Telemetry file {path} is not UTF-8 text: {e}") from e

    rows = parse_csv_text(text)
    logger.info("Loaded %d rows from %s", len(rows), path)
    return rows
