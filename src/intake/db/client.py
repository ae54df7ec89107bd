"""
Agency Intake - Supabase Client.

Low-level database access. The onboarding row store is the only caller.
"""

from supabase import Client, create_client

from intake.config import settings

# Singleton client instance
_client: Client | None = None


def get_client() -> Client:
    """
    Get the Supabase client.

    Uses singleton pattern to reuse connection.
    """
    global _client

    if _client is None:
        _client = create_client(
            settings.supabase_url,
            settings.supabase_anon_key,
        )

    return _client


def set_client(client: Client | None) -> None:
    """Replace the singleton (tests, or a pre-configured client)."""
    global _client
    _client = client
