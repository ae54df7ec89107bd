"""
Agency Intake - Database access.

Supabase is the only backend; the onboarding row store wraps it.
"""

from intake.db.client import get_client, set_client

__all__ = [
    "get_client",
    "set_client",
]
