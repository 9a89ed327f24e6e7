"""Pure domain pieces: error taxonomy, password hashing, token rules, records.

Nothing here touches FastAPI or the filesystem, so the modules are reused by
the store, the token service and the handlers alike.
"""
__all__ = ["errors", "hashing", "records", "tokens"]
