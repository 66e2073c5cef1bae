"""
Session management module.

This module provides the SessionStore interface and its PostgREST-backed
implementation, which persists web sessions in a remote table and prunes
expired rows in the background.
"""

from pgrest_session.session.expiry import DEFAULT_TTL_SECONDS, compute_expiry
from pgrest_session.session.postgrest_store import PostgrestSessionStore
from pgrest_session.session.pruner import Pruner
from pgrest_session.session.store import SessionStore

__all__ = [
    "SessionStore",
    "PostgrestSessionStore",
    "Pruner",
    "compute_expiry",
    "DEFAULT_TTL_SECONDS",
]
