"""
Book entity.
"""

import datetime
import uuid
from typing import ClassVar, Tuple

from pydantic import Field

from cassandra_sink.models.model_base import EntityBase


class Book(EntityBase):
    """Book stored in the ``book`` table, keyed by isbn"""

    entity_name: ClassVar[str] = "book"
    table_name: ClassVar[str] = "book"
    primary_key: ClassVar[Tuple[str, ...]] = ("isbn",)

    isbn: uuid.UUID = Field(..., description="Book identifier")
    title: str = Field(..., description="Title")
    author: str = Field(..., description="Author")
    pages: int = Field(..., description="Page count")
    sale_date: datetime.datetime = Field(..., alias="saleDate", description="Date of sale")
    in_stock: bool = Field(..., alias="inStock", description="Whether the book is in stock")
