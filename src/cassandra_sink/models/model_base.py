"""
Base abstract entity for the object-mapped write path.
Maps a Pydantic model onto a Cassandra table.
"""

import datetime
import decimal
import ipaddress
import types
import typing
import uuid
from abc import ABC
from typing import Any, ClassVar, Dict, List, Mapping, Tuple, Type, get_args, get_origin

from pydantic import BaseModel, ConfigDict

from cassandra_sink.exceptions import StoreError

# Python annotation to CQL column type
CQL_TYPES: Dict[Any, str] = {
    uuid.UUID: "uuid",
    str: "text",
    int: "int",
    float: "double",
    bool: "boolean",
    datetime.datetime: "timestamp",
    datetime.date: "date",
    datetime.time: "time",
    decimal.Decimal: "decimal",
    bytes: "blob",
    ipaddress.IPv4Address: "inet",
    ipaddress.IPv6Address: "inet",
}


def cql_type_for(annotation: Any) -> str:
    """CQL type for a field annotation, unwrapping Optional and collections"""
    origin = get_origin(annotation)
    args = [a for a in get_args(annotation) if a is not type(None)]

    if origin in (typing.Union, getattr(types, "UnionType", None)) and len(args) == 1:
        return cql_type_for(args[0])
    if origin in (list, List):
        return f"list<{cql_type_for(args[0])}>"
    if origin in (set, frozenset):
        return f"set<{cql_type_for(args[0])}>"
    if origin in (dict, Dict):
        return f"map<{cql_type_for(args[0])}, {cql_type_for(args[1])}>"
    if annotation in CQL_TYPES:
        return CQL_TYPES[annotation]
    raise StoreError(f"No CQL type for annotation {annotation!r}")


class EntityBase(BaseModel, ABC):
    """Base class for all mapped entities"""

    # Class variables to be defined by subclasses
    entity_name: ClassVar[str]
    table_name: ClassVar[str]
    primary_key: ClassVar[Tuple[str, ...]]

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def columns(cls) -> List[str]:
        """Column names in field declaration order"""
        return [field.alias or name for name, field in cls.model_fields.items()]

    @classmethod
    def column_types(cls) -> Dict[str, str]:
        """Column name to CQL type"""
        return {field.alias or name: cql_type_for(field.annotation)
                for name, field in cls.model_fields.items()}

    @classmethod
    def from_row(cls: Type["EntityBase"], row: Any) -> "EntityBase":
        """
        Build an entity from a driver row.

        Unquoted CQL identifiers come back lower-cased, so columns are
        matched without regard to case.
        """
        values = row._asdict() if hasattr(row, "_asdict") else dict(row)
        by_lower = {key.lower(): value for key, value in values.items()}
        return cls.model_validate({column: by_lower.get(column.lower()) for column in cls.columns()})

    def to_row(self) -> Dict[str, Any]:
        """Column name to Python value, ready for binding"""
        return self.model_dump(by_alias=True)

    def key(self) -> Dict[str, Any]:
        """Primary key column values"""
        row = self.to_row()
        return {column: row[column] for column in self.primary_key}

    @classmethod
    def from_mapping(cls: Type["EntityBase"], data: Mapping[str, Any]) -> "EntityBase":
        return cls.model_validate(data)
