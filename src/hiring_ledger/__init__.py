"""Hiring Ledger - an append-only ledger of job applications and responses.

Applications are submitted once and become immutable. The ledger owner, and
any principal the owner allow-lists, may append responses; responses are never
edited or deleted.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version("hiring-ledger")
except PackageNotFoundError:
    __version__ = "0.1.0"
