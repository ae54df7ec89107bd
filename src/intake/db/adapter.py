"""
Table Client Protocol.

The row store only needs the PostgREST query builder entry point, so any
object with a Supabase-style table() method can back it.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class TableClient(Protocol):
    """
    Minimal surface of a Supabase client used by the row store.

    table() returns a query builder supporting .select(), .eq(), .order(),
    .limit(), .maybe_single(), .upsert() and .execute().
    """

    def table(self, name: str) -> Any:
        ...
