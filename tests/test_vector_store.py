"""Tests for the OpenAI-backed article store and history stores."""

from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest

from lexchat.clients.history import InMemoryHistoryStore, JsonFileHistoryStore
from lexchat.clients.vector_store import OpenAIVectorStore, VectorStoreConfig
from lexchat.models.llm import Message


async def paginate(*items):
    for item in items:
        yield item


@pytest.fixture
def vector_store():
    """Create an OpenAIVectorStore with a mocked SDK client."""
    with patch.dict("os.environ", {"OPENAI_API_KEY": "test-key"}):
        store = OpenAIVectorStore(config=VectorStoreConfig(store_name="Law Stuff"))
    store.client = Mock()
    store.client.vector_stores.list = Mock(
        side_effect=lambda: paginate(
            SimpleNamespace(id="vs_other", name="Other"),
            SimpleNamespace(id="vs_law", name="Law Stuff"),
        )
    )
    return store


class TestOpenAIVectorStore:
    """Tests for store lookup, search and fetch."""

    @pytest.mark.asyncio
    async def test_store_id_is_resolved_once(self, vector_store):
        """Test that the named store is looked up and cached."""
        assert await vector_store.get_store_id() == "vs_law"
        assert await vector_store.get_store_id() == "vs_law"
        vector_store.client.vector_stores.list.assert_called_once()

    @pytest.mark.asyncio
    async def test_missing_store(self, vector_store):
        """Test that an unknown store name raises LookupError."""
        vector_store.config.store_name = "Missing"
        with pytest.raises(LookupError, match="Missing"):
            await vector_store.get_store_id()

    @pytest.mark.asyncio
    async def test_search_maps_attributes(self, vector_store):
        """Test that hits carry code, title and breadcrumb attributes."""
        vector_store.client.vector_stores.search = Mock(
            return_value=paginate(
                SimpleNamespace(
                    file_id="file-1",
                    score=0.8,
                    attributes={"code": "CIV-5", "title": "Leases", "breadcrumb": "Civil > Contracts"},
                ),
                SimpleNamespace(file_id="file-2", score=0.4, attributes=None),
            )
        )

        hits = await vector_store.search("verbal lease")

        vector_store.client.vector_stores.search.assert_called_once_with("vs_law", query="verbal lease")
        assert [hit.as_dict() for hit in hits] == [
            {"code": "CIV-5", "title": "Leases", "breadcrumb": "Civil > Contracts", "score": 0.8, "file_id": "file-1"},
            {"code": None, "title": None, "breadcrumb": None, "score": 0.4, "file_id": "file-2"},
        ]

    @pytest.mark.asyncio
    async def test_fetch_joins_chunks(self, vector_store):
        """Test that file content chunks are joined with newlines."""
        vector_store.client.vector_stores.files.content = Mock(
            return_value=paginate(SimpleNamespace(text="Article 5"), SimpleNamespace(text="Leases may be verbal."))
        )

        content = await vector_store.fetch("file-1")

        assert content == "Article 5\nLeases may be verbal."
        vector_store.client.vector_stores.files.content.assert_called_once_with("file-1", vector_store_id="vs_law")

    def test_missing_api_key(self):
        """Test that a missing API key is a configuration error."""
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(ValueError, match="OPENAI_API_KEY"):
                OpenAIVectorStore()


class TestHistoryStores:
    """Tests for chat history persistence."""

    @pytest.fixture(params=["memory", "file"])
    def history_store(self, request, tmp_path):
        """Create each history store implementation."""
        if request.param == "memory":
            return InMemoryHistoryStore()
        return JsonFileHistoryStore(tmp_path / "history")

    def test_save_load_delete(self, history_store):
        """Test the full lifecycle of a stored conversation."""
        messages = [Message(role="assistant", content="Hello"), Message(role="user", content="Q")]

        assert history_store.load("chat-1") is None
        history_store.save("chat-1", messages)
        assert history_store.load("chat-1") == messages

        assert history_store.delete("chat-1")
        assert history_store.load("chat-1") is None
        assert not history_store.delete("chat-1")

    def test_file_keys_are_sanitized(self, tmp_path):
        """Test that keys cannot escape the history directory."""
        store = JsonFileHistoryStore(tmp_path)
        store.save("../chat-1", [Message(role="user", content="Q")])

        assert (tmp_path / "chat-1.json").exists()
        with pytest.raises(ValueError):
            store.load("../")
