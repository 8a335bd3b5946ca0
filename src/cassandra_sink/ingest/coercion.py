"""
Conversion of JSON values to the Python types the driver serializes for a
CQL column type.

JSON carries UUIDs and timestamps as strings, while prepared statements need
``uuid.UUID`` and ``datetime`` objects. Values already of a suitable type are
passed through unchanged.
"""

import datetime
import decimal
import ipaddress
import uuid
from typing import Any, Callable, Dict, Optional, Sequence

from dateutil import parser as dtparse

from cassandra_sink.exceptions import CoercionError

_TRUE = {"true", "1", "yes"}
_FALSE = {"false", "0", "no"}


def _to_uuid(value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def _to_timestamp(value: Any) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # epoch milliseconds
        return datetime.datetime.fromtimestamp(value / 1000.0, tz=datetime.timezone.utc)
    if isinstance(value, str):
        return dtparse.isoparse(value) if "T" in value else dtparse.parse(value)
    raise TypeError(type(value).__name__)


def _to_date(value: Any) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    return dtparse.parse(str(value)).date()


def _to_time(value: Any) -> datetime.time:
    if isinstance(value, datetime.time):
        return value
    return datetime.time.fromisoformat(str(value))


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError("bool")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(value)
        return int(value)
    return int(str(value).strip())


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError("bool")
    return float(value)


def _to_decimal(value: Any) -> decimal.Decimal:
    if isinstance(value, decimal.Decimal):
        return value
    try:
        return decimal.Decimal(str(value))
    except decimal.InvalidOperation as e:
        raise ValueError(value) from e


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(value)


def _to_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        raise TypeError(type(value).__name__)
    return str(value)


def _to_inet(value: Any) -> str:
    return str(ipaddress.ip_address(str(value)))


def _to_blob(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return bytes.fromhex(str(value).removeprefix("0x"))


CONVERTERS: Dict[str, Callable[[Any], Any]] = {
    "uuid": _to_uuid,
    "timeuuid": _to_uuid,
    "timestamp": _to_timestamp,
    "date": _to_date,
    "time": _to_time,
    "int": _to_int,
    "bigint": _to_int,
    "smallint": _to_int,
    "tinyint": _to_int,
    "varint": _to_int,
    "counter": _to_int,
    "float": _to_float,
    "double": _to_float,
    "decimal": _to_decimal,
    "boolean": _to_bool,
    "text": _to_text,
    "varchar": _to_text,
    "ascii": _to_text,
    "inet": _to_inet,
    "blob": _to_blob,
}


def cql_type_name(cql_type: Any) -> Optional[str]:
    """
    Normalize a driver cql type (class or instance) or a plain string to its
    lower-case type name, e.g. ``"uuid"`` or ``"list"``.
    """
    if cql_type is None:
        return None
    if isinstance(cql_type, str):
        return cql_type.split("<", 1)[0].strip().lower()
    typename = getattr(cql_type, "typename", None)
    return typename.lower() if typename else None


def _subtypes(cql_type: Any) -> Sequence[Any]:
    return getattr(cql_type, "subtypes", None) or ()


def coerce_value(value: Any, cql_type: Any, column: Optional[str] = None) -> Any:
    """
    Convert ``value`` for a bind marker of ``cql_type``.

    Args:
        value: Value taken from the record
        cql_type: Driver cql type or type name; unknown types pass through
        column: Column name used in error messages

    Returns:
        The converted value

    Raises:
        CoercionError: If the value cannot represent the column type
    """
    if value is None:
        return None

    name = cql_type_name(cql_type)
    if name is None:
        return value

    try:
        if name in ("list", "set"):
            if not isinstance(value, (list, tuple, set, frozenset)):
                raise TypeError(type(value).__name__)
            subtypes = _subtypes(cql_type)
            items = [coerce_value(item, subtypes[0] if subtypes else None, column) for item in value]
            return items if name == "list" else set(items)
        if name == "map":
            if not isinstance(value, dict):
                raise TypeError(type(value).__name__)
            subtypes = _subtypes(cql_type)
            key_type, value_type = (subtypes[0], subtypes[1]) if len(subtypes) == 2 else (None, None)
            return {coerce_value(k, key_type, column): coerce_value(v, value_type, column)
                    for k, v in value.items()}

        converter = CONVERTERS.get(name)
        if converter is None:
            return value
        return converter(value)
    except CoercionError:
        raise
    except (TypeError, ValueError, OverflowError) as e:
        raise CoercionError(value, name, column) from e
