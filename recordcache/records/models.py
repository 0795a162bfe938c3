"""Data shapes exchanged with the record store."""

from typing import Any, Dict, List, Union

from pydantic import BaseModel, Field


# Raw tab contents: header row followed by data rows
RawRows = List[List[Any]]
# Rows transformed through a field -> header mapping
MappedRows = List[Dict[str, Any]]
Rows = Union[RawRows, MappedRows]


class Tab(BaseModel):
    """A logical tab within a table."""
    title: str
    sheet_id: int = Field(ge=0)


class RecordStoreError(Exception):
    """Raised when the record store cannot serve a read or write."""
    pass
