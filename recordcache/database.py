"""The ``database`` namespace: memoized reads over a record store.

Reads are cached per (table, tab, mapping). Writes go straight to the
store and then invalidate every cached read they may have made stale,
using prefix invalidation so reads with any mapping are covered.

Usage:
    runtime = CacheRuntime()
    database = build_database(runtime, InMemoryRecordStore(tables))

    rows = await database.getData("INVENTORY", "FURNITURE")
    await database.setData("INVENTORY", "FURNITURE", new_rows)
"""

from typing import Any, Dict, List, Mapping, Optional

from recordcache.cache import (
    CacheRef,
    CacheRuntime,
    DependencyScope,
    Namespace,
    invalidate_cache,
    wrap_operations,
)
from recordcache.logging_config import get_logger
from recordcache.records import RecordStore, RecordStoreError, Rows, Tab
from recordcache.records.memory import objects_to_rows, rows_to_objects

logger = get_logger(name=__name__)

NAMESPACE = "database"

MUTATIONS = ("setData", "updateRow", "createTab")


class DatabaseOperations:
    """Uncached operations; ``build_database`` wraps them."""

    def __init__(self, runtime: CacheRuntime, records: RecordStore):
        self.runtime = runtime
        self.records = records
        self.namespace: Optional[Namespace] = None

    async def get_data(
        self,
        scope: DependencyScope,
        table_id: str,
        tab_id: str,
        mapping: Optional[Dict[str, str]] = None,
    ) -> Rows:
        return await self.records.read(table_id, tab_id, mapping)

    async def get_tabs(self, scope: DependencyScope, table_id: str) -> List[Tab]:
        return await self.records.list_tabs(table_id)

    async def find_tab_by_name(self, scope: DependencyScope, table_id: str, tab_name: str) -> Optional[Tab]:
        tabs = await scope.call(self.namespace.getTabs, table_id)
        for tab in tabs:
            if tab.title == tab_name:
                return tab
        return None

    # Mutations

    async def set_data(
        self, table_id: str, tab_id: str, rows: Rows, mapping: Optional[Dict[str, str]] = None
    ) -> bool:
        result = await self.records.write(table_id, tab_id, rows, mapping)
        invalidate_cache(self.runtime, [CacheRef(NAMESPACE, "getData", (table_id, tab_id))], by_prefix=True)
        return result

    async def update_row(
        self,
        table_id: str,
        tab_id: str,
        update: Dict[str, Any],
        key_field: str,
        mapping: Optional[Dict[str, str]] = None,
    ) -> bool:
        """Merge ``update`` into the row whose ``key_field`` matches.

        Raises:
            RecordStoreError: If no row has the same ``key_field`` value.
        """
        mapping = mapping or {}
        key_header = mapping.get(key_field, key_field)
        by_header = {mapping.get(field, field): value for field, value in update.items()}

        raw = await self.records.read(table_id, tab_id)
        headers = {str(h).strip(): str(h).strip() for h in raw[0]} if raw else {}
        rows = rows_to_objects(raw, headers)
        for i, row in enumerate(rows):
            if row.get(key_header) == by_header.get(key_header):
                rows[i] = {**row, **by_header}
                break
        else:
            raise RecordStoreError(
                f"Row with {key_field}={update.get(key_field)!r} not found in tab {tab_id}"
            )

        await self.records.write(table_id, tab_id, objects_to_rows(rows, headers))
        invalidate_cache(self.runtime, [CacheRef(NAMESPACE, "getData", (table_id, tab_id))], by_prefix=True)
        return True

    async def create_tab(self, table_id: str, template: Optional[Tab], name: str) -> Tab:
        tab = await self.records.create_tab(table_id, template, name)
        invalidate_cache(self.runtime, [CacheRef(NAMESPACE, "getTabs", (table_id,))])
        logger.info("Created tab '{}' in {}", name, table_id)
        return tab


def build_database(
    runtime: CacheRuntime,
    records: RecordStore,
    infinite: tuple = (),
    custom_ttls: Optional[Mapping[str, float]] = None,
) -> Namespace:
    """Wrap :class:`DatabaseOperations` over ``records`` as the database namespace."""
    ops = DatabaseOperations(runtime, records)
    ops.namespace = wrap_operations(
        runtime,
        NAMESPACE,
        {
            "getData": ops.get_data,
            "getTabs": ops.get_tabs,
            "findTabByName": ops.find_tab_by_name,
            "setData": ops.set_data,
            "updateRow": ops.update_row,
            "createTab": ops.create_tab,
        },
        mutations=MUTATIONS,
        infinite=infinite,
        custom_ttls=custom_ttls,
    )
    return ops.namespace
