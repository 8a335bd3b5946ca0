"""
Record type for the ingest path.
"""

from typing import Any, Dict, Iterator, List, Mapping, Tuple

from cassandra_sink.exceptions import MissingParameterError, PayloadError


class Record(Mapping[str, Any]):
    """Ordered field-name to value mapping deserialized from a message"""

    def __init__(self, fields: Mapping[str, Any]):
        if not isinstance(fields, Mapping):
            raise PayloadError(f"Record must be a JSON object, got {type(fields).__name__}")
        self._fields: Dict[str, Any] = dict(fields)

    def __getitem__(self, name: str) -> Any:
        return self._fields[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def require(self, name: str) -> Any:
        """Value of ``name``, raising MissingParameterError if absent"""
        try:
            return self._fields[name]
        except KeyError:
            raise MissingParameterError(name) from None

    @property
    def field_names(self) -> List[str]:
        return list(self._fields)

    def ordered_items(self, exclude: Tuple[str, ...] = ()) -> List[Tuple[str, Any]]:
        """Fields in record order, skipping the ``exclude`` names"""
        return [(name, value) for name, value in self._fields.items() if name not in exclude]

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._fields)

    def __repr__(self) -> str:
        return f"Record({self._fields!r})"
