"""Article store backed by an OpenAI vector store."""

import os
from dataclasses import dataclass, field
from typing import Any, Protocol

from openai import AsyncOpenAI

from lexchat.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ArticleHit:
    """A search hit describing one stored article."""

    file_id: str
    score: float
    code: Any = None
    title: Any = None
    breadcrumb: Any = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "title": self.title,
            "breadcrumb": self.breadcrumb,
            "score": self.score,
            "file_id": self.file_id,
        }


class ArticleStore(Protocol):
    """Search and retrieval capability used by the article tools."""

    async def search(self, query: str) -> list[ArticleHit]: ...

    async def fetch(self, file_id: str) -> str: ...


@dataclass
class VectorStoreConfig:
    """Configuration for the OpenAI vector store lookup."""

    store_name: str = field(default_factory=lambda: os.getenv("VECTOR_STORE_NAME", "Law Stuff"))


class OpenAIVectorStore:
    """Article store that searches and reads files of a named OpenAI vector store."""

    def __init__(self, api_key: str | None = None, config: VectorStoreConfig | None = None):
        """Initialize the vector store client.

        Args:
            api_key: OpenAI API key (defaults to OPENAI_API_KEY env var)
            config: Store configuration
        """
        openai_api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not openai_api_key:
            raise ValueError("OPENAI_API_KEY environment variable is required")

        self.client = AsyncOpenAI(api_key=openai_api_key)
        self.config = config or VectorStoreConfig()
        self._store_id: str | None = None

    async def get_store_id(self) -> str:
        """Resolve the configured store name to its id, caching the result."""
        if self._store_id:
            return self._store_id

        async for store in self.client.vector_stores.list():
            if store.name == self.config.store_name:
                self._store_id = store.id
                logger.info(f"Using vector store {store.id} ({store.name})")
                return store.id

        raise LookupError(f"Vector store '{self.config.store_name}' not found")

    async def search(self, query: str) -> list[ArticleHit]:
        store_id = await self.get_store_id()
        hits: list[ArticleHit] = []
        async for doc in self.client.vector_stores.search(store_id, query=query):
            attributes = doc.attributes or {}
            hits.append(
                ArticleHit(
                    file_id=doc.file_id,
                    score=doc.score,
                    code=attributes.get("code"),
                    title=attributes.get("title"),
                    breadcrumb=attributes.get("breadcrumb"),
                )
            )
        logger.debug(f"Vector store search returned {len(hits)} hits")
        return hits

    async def fetch(self, file_id: str) -> str:
        store_id = await self.get_store_id()
        chunks: list[str] = []
        async for chunk in self.client.vector_stores.files.content(file_id, vector_store_id=store_id):
            chunks.append(chunk.text or "")
        return "\n".join(chunks)
