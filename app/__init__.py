"""Application package initializer.

Exposes the installed distribution version as ``__version__`` so the HTTP
layer and the smoke runner can report it.
"""
from importlib.metadata import PackageNotFoundError, version

try:  # Resolves once the project is installed; source checkouts fall back.
    __version__ = version("flatfile-accounts-api")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
