"""Exceptions raised by the sink"""

from typing import Optional


class SinkError(Exception):
    """Base exception for sink errors"""
    pass


class ConfigurationError(SinkError):
    """Raised when the sink configuration is inconsistent"""
    pass


class PayloadError(SinkError):
    """Raised when a message payload cannot be deserialized"""
    pass


class BindingError(SinkError):
    """Raised when a record cannot be bound to the ingest query"""
    pass


class MissingParameterError(BindingError):
    """Raised when a named parameter has no matching record field"""
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Record has no field for parameter '{name}'")


class CoercionError(BindingError):
    """Raised when a record value cannot be converted to the column type"""
    def __init__(self, value: object, cql_type: str, column: Optional[str] = None):
        self.value = value
        self.cql_type = cql_type
        self.column = column
        target = f"column '{column}'" if column else "bind marker"
        super().__init__(f"Cannot convert {value!r} to {cql_type} for {target}")


class StoreError(SinkError):
    """Raised when the store is used before it is connected or misconfigured"""
    pass
