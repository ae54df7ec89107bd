"""
Onboarding Row Store.

Thin wrapper over one Supabase table at a time: fetch the latest row for a
session, and upsert the row for a session. The session id is the conflict key,
so repeated submissions overwrite instead of appending.
"""

import logging
from typing import Any

from intake.db.adapter import TableClient

from .errors import StoreUnavailable

logger = logging.getLogger(__name__)

Row = dict[str, Any]

SESSION_COLUMN = "session_id"
CREATED_COLUMN = "created_at"


class RowStore:
    """
    Session-keyed access to the onboarding tables.

    `error` holds the message of the last failed call (None after a
    successful one), so callers that only get a boolean back from upsert()
    can still show what went wrong.
    """

    def __init__(self, client: TableClient | None = None):
        self._client = client
        self.error: str | None = None

    @property
    def client(self) -> TableClient:
        if self._client is None:
            from intake.db.client import get_client

            self._client = get_client()
        return self._client

    async def fetch_latest(self, collection: str, session_id: str) -> Row | None:
        """
        Get the newest row for `session_id` in `collection`.

        Returns None when the session has no row yet.

        Raises:
            StoreUnavailable: transport or auth failure.
        """
        self.error = None
        try:
            response = (
                self.client.table(collection)
                .select("*")
                .eq(SESSION_COLUMN, session_id)
                .order(CREATED_COLUMN, desc=True)
                .limit(1)
                .maybe_single()
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching from {collection}: {e}")
            self.error = str(e)
            raise StoreUnavailable(collection, str(e)) from e

        # maybe_single() yields no response at all on zero rows in some
        # supabase-py releases, and a response with data=None in others.
        if response is None or not response.data:
            return None
        return response.data

    async def upsert(self, collection: str, session_id: str, row: Row) -> bool:
        """
        Insert or update the row for `session_id` in `collection`.

        Returns False on failure; the message is left in `self.error`.
        """
        self.error = None
        payload = {**row, SESSION_COLUMN: session_id}

        try:
            self.client.table(collection).upsert(
                [payload], on_conflict=SESSION_COLUMN
            ).execute()
        except Exception as e:
            logger.error(f"Error upserting into {collection}: {e}")
            self.error = str(e) or "An unexpected error occurred while saving data."
            return False

        logger.debug(f"Saved {collection} row for session {session_id}")
        return True
