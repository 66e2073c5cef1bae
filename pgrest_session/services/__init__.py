"""
Remote table access for the session store.

TableEndpoint is the filtered CRUD interface the store depends on;
PostgrestService implements it against a PostgREST HTTP endpoint.
"""

from pgrest_session.services.endpoint import Row, TableEndpoint
from pgrest_session.services.filters import Filter, eq, gte, lt, lte
from pgrest_session.services.postgrest_service import PostgrestService

__all__ = [
    "Row",
    "TableEndpoint",
    "PostgrestService",
    "Filter",
    "eq",
    "gte",
    "lt",
    "lte",
]
