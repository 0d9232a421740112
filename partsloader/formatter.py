import logging
import re

from partsloader.errors import MalformedInputError
from partsloader.tables import INTEGER_TYPES


logger = logging.getLogger(__name__)

_DATE_PATTERN = re.compile(r"([0-9]{4})([0-9]{2})([0-9]{2})?")


def format_date(raw: str, *, strict: bool = False) -> str | None:
    text = raw.strip()
    if not text:
        return None

    match = _DATE_PATTERN.match(text)
    if match is None:
        if strict:
            raise MalformedInputError(f"date value {raw!r} does not start with YYYYMM")
        logger.debug("unparseable date treated as null", extra={"raw_value": raw})
        return None

    year, month, day = match.groups()
    # Month-only legacy dates carry day 00.
    return f"{year}-{month}-{day or '00'}"


def format_column(column_type: str, raw: str, *, strict: bool = False) -> str | None:
    """Normalize one raw fixed-width slice for its declared column type.

    Numeric and boolean values are only checked for emptiness here; their
    numeric interpretation happens when the SQL literal is rendered.
    """
    if column_type == "boolean" or column_type in INTEGER_TYPES:
        return None if raw.strip() == "" else raw

    if column_type == "date":
        return format_date(raw, strict=strict)

    return raw.strip()
