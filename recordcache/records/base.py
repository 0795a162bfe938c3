"""Contract for the backing record store.

The cache layer only needs reads that are stable enough to memoize and
writes that are the sole trigger for invalidation. Transport, retries and
timeouts belong to the implementation.
"""

from typing import Dict, List, Optional, Protocol

from .models import Rows, Tab


class RecordStore(Protocol):
    async def read(self, table_id: str, tab_id: str, mapping: Optional[Dict[str, str]] = None) -> Rows:
        """Return a tab's rows, as dicts keyed by field when ``mapping`` is given."""
        ...

    async def write(
        self, table_id: str, tab_id: str, rows: Rows, mapping: Optional[Dict[str, str]] = None
    ) -> bool:
        """Replace a tab's rows; ``mapping`` translates dict rows back to headers."""
        ...

    async def list_tabs(self, table_id: str) -> List[Tab]:
        ...

    async def create_tab(self, table_id: str, template: Optional[Tab], name: str) -> Tab:
        ...
