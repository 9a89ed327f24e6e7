"""Use-cases: token service, resource handlers and the request dispatcher."""
