"""
Hosted-backend collaborators: structural contracts and httpx adapters.
"""

from studyaid.clients.auth import SupabaseAuthClient
from studyaid.clients.functions import SupabaseFunctionsClient
from studyaid.clients.postgrest import PostgrestClient
from studyaid.clients.protocols import (
    AuthProvider,
    DataClient,
    Filter,
    FunctionsClient,
    Order,
    StorageClient,
)
from studyaid.clients.storage import SupabaseStorageClient

__all__ = [
    "AuthProvider",
    "DataClient",
    "Filter",
    "FunctionsClient",
    "Order",
    "PostgrestClient",
    "StorageClient",
    "SupabaseAuthClient",
    "SupabaseFunctionsClient",
    "SupabaseStorageClient",
]
