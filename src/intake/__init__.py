"""
Agency Intake - contractor onboarding backend.

Packages:
- intake: configuration, database client, web app, operator CLI
- onboarding: the three-step wizard (session, store, rules, controllers)
"""

__version__ = "1.0.0"
