"""In-memory record store for local runs and tests.

Tables hold tabs of raw rows, the first row being the header. A mapping of
``{field: header}`` turns rows into dicts on read and back on write.
"""

import asyncio
import copy
from collections import Counter
from typing import Any, Dict, List, Optional

from recordcache.logging_config import get_logger

from .models import MappedRows, RawRows, RecordStoreError, Rows, Tab

logger = get_logger(name=__name__)


def rows_to_objects(raw: RawRows, mapping: Dict[str, str]) -> MappedRows:
    """Transform header + rows into dicts keyed by mapping field.

    Rows whose mapped values are all blank are dropped.
    """
    if len(raw) < 2:
        return []

    headers = [str(h).strip() for h in raw[0]]
    index = {field: headers.index(header) for field, header in mapping.items() if header in headers}

    objects = []
    for row in raw[1:]:
        obj = {
            field: (row[index[field]] if field in index and index[field] < len(row) else "")
            for field in mapping
        }
        if any(value != "" for value in obj.values()):
            objects.append(obj)
    return objects


def objects_to_rows(objects: MappedRows, mapping: Dict[str, str]) -> RawRows:
    """Reverse of :func:`rows_to_objects`, headers in mapping order."""
    headers = list(mapping.values())
    fields = list(mapping.keys())
    return [headers] + [[obj.get(field, "") for field in fields] for obj in objects]


class InMemoryRecordStore:
    """Dict-backed :class:`~recordcache.records.base.RecordStore`.

    ``calls`` counts invocations per method so callers can tell whether a
    read actually reached the store.
    """

    def __init__(self, tables: Optional[Dict[str, Dict[str, RawRows]]] = None, latency: float = 0.0):
        self._tables: Dict[str, Dict[str, RawRows]] = copy.deepcopy(tables or {})
        self._tabs: Dict[str, List[Tab]] = {
            table_id: [Tab(title=title, sheet_id=i) for i, title in enumerate(tabs)]
            for table_id, tabs in self._tables.items()
        }
        self.latency = latency
        self.calls: Counter = Counter()

    async def _pause(self) -> None:
        # Always yield, so concurrent callers interleave as they would over a network
        await asyncio.sleep(self.latency)

    def _table(self, table_id: str) -> Dict[str, RawRows]:
        try:
            return self._tables[table_id]
        except KeyError:
            raise RecordStoreError(f"Unknown table: {table_id}") from None

    async def read(self, table_id: str, tab_id: str, mapping: Optional[Dict[str, str]] = None) -> Rows:
        self.calls["read"] += 1
        await self._pause()

        table = self._table(table_id)
        if tab_id not in table:
            raise RecordStoreError(f"Unknown tab '{tab_id}' in table {table_id}")

        raw = copy.deepcopy(table[tab_id])
        if mapping:
            return rows_to_objects(raw, mapping)
        return raw

    async def write(
        self, table_id: str, tab_id: str, rows: Rows, mapping: Optional[Dict[str, str]] = None
    ) -> bool:
        self.calls["write"] += 1
        await self._pause()

        table = self._table(table_id)
        if tab_id not in table:
            raise RecordStoreError(f"Unknown tab '{tab_id}' in table {table_id}")

        table[tab_id] = objects_to_rows(rows, mapping) if mapping else copy.deepcopy(rows)
        logger.debug("Wrote {} rows to {}/{}", len(rows), table_id, tab_id)
        return True

    async def list_tabs(self, table_id: str) -> List[Tab]:
        self.calls["list_tabs"] += 1
        await self._pause()

        self._table(table_id)
        return [tab.model_copy() for tab in self._tabs.get(table_id, [])]

    async def create_tab(self, table_id: str, template: Optional[Tab], name: str) -> Tab:
        self.calls["create_tab"] += 1
        await self._pause()

        table = self._tables.setdefault(table_id, {})
        if name in table:
            raise RecordStoreError(f"Tab '{name}' already exists in table {table_id}")

        if template is not None:
            if template.title not in table:
                raise RecordStoreError(f"Template tab '{template.title}' not found in table {table_id}")
            table[name] = copy.deepcopy(table[template.title])
        else:
            table[name] = [["Key", "Value", "Timestamp"]]

        tabs = self._tabs.setdefault(table_id, [])
        tab = Tab(title=name, sheet_id=max((t.sheet_id for t in tabs), default=-1) + 1)
        tabs.append(tab)
        return tab.model_copy()

    def raw(self, table_id: str, tab_id: str) -> Any:
        """Direct view of a tab's stored rows, bypassing call counting."""
        return copy.deepcopy(self._table(table_id)[tab_id])
