"""HTTP adapter: request schemas and the catch-all FastAPI route."""
