"""
Study Aid Client

Wires the hosted-backend adapters, the session coordinator, the resilient
executor and the study services into one object per signed-in app.

Usage:
    async with StudyAidClient.from_settings() as client:
        await client.auth.sign_in_with_password(email, password)
        docs = await client.documents.list_documents()

        client.visibility.mark_hidden()
        ...
        client.visibility.mark_visible()   # warms up after a long absence
"""

import logging
from typing import Optional

import httpx

from studyaid.clients import (
    PostgrestClient,
    SupabaseAuthClient,
    SupabaseFunctionsClient,
    SupabaseStorageClient,
)
from studyaid.config import Settings, settings as default_settings
from studyaid.services import (
    AIService,
    DocumentService,
    FlashcardService,
    MasteryService,
    StorageService,
)
from studyaid.session import (
    VisibilityMonitor,
    create_query_executor,
    create_session_coordinator,
)

logger = logging.getLogger(__name__)


class StudyAidClient:
    """All client-side collaborators sharing one session coordinator."""

    def __init__(self, settings: Settings, http: Optional[httpx.AsyncClient] = None) -> None:
        self.settings = settings
        self.http = http or httpx.AsyncClient(
            timeout=httpx.Timeout(30.0, connect=settings.HTTP_CONNECT_TIMEOUT)
        )

        url, key = settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY
        self.auth = SupabaseAuthClient(url, key, http=self.http)
        self.data = PostgrestClient(url, key, access_token=self._access_token, http=self.http)
        self.storage_client = SupabaseStorageClient(
            url, key, settings.STORAGE_BUCKET, access_token=self._access_token, http=self.http
        )
        self.functions = SupabaseFunctionsClient(
            url, key, access_token=self._access_token, http=self.http
        )

        self.coordinator = create_session_coordinator(self.auth, self._probe, settings)
        self._unsubscribe = self.coordinator.bind(self.auth)
        self.executor = create_query_executor(self.coordinator, settings)
        self.visibility = VisibilityMonitor(
            self.coordinator.warm_up_connection,
            min_hidden_seconds=settings.WARM_UP_MIN_HIDDEN_SECONDS,
        )

        self.documents = DocumentService(self.data, self.executor)
        self.storage = StorageService(
            self.storage_client,
            self.executor,
            max_file_size_mb=settings.UPLOAD_MAX_FILE_SIZE_MB,
            signed_url_ttl=settings.SIGNED_URL_TTL_SECONDS,
        )
        self.ai = AIService(self.data, self.functions, self.executor)
        self.flashcards = FlashcardService(self.data, self.executor)
        self.mastery = MasteryService(self.data, self.executor)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "StudyAidClient":
        return cls(settings or default_settings)

    def _access_token(self) -> Optional[str]:
        # Reads use whatever is cached, even if expired; the backend decides
        session = self.coordinator.cache.get_session()
        return session.access_token if session else None

    async def _probe(self) -> None:
        await self.data.select(self.settings.WARM_UP_PROBE_TABLE, columns="id", limit=1)

    async def aclose(self) -> None:
        self._unsubscribe()
        await self.http.aclose()

    async def __aenter__(self) -> "StudyAidClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
