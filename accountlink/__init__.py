"""
Account Link

Account management API with per-account bearer tokens, an access gate
for account-scoped resources, and OAuth linking of external identities.
"""

__version__ = "1.0.0"
