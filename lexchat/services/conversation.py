"""Wiring of the chat orchestrator for the configured environment."""

import os

from lexchat.clients.anthropic import get_anthropic_client
from lexchat.clients.vector_store import OpenAIVectorStore
from lexchat.services.inference import DevelopmentInference
from lexchat.services.orchestrator import ChatOrchestrator
from lexchat.tools.registry import ToolsRegistry, get_tools_registry
from lexchat.utils.logging import get_logger

logger = get_logger(__name__)


def get_environment() -> str:
    return os.getenv("ENVIRONMENT", "development").lower()


def create_orchestrator(environment: str | None = None) -> ChatOrchestrator:
    """Build the orchestrator for ``environment`` (production or development)."""
    environment = environment or get_environment()

    if environment == "production":
        logger.info("Creating production orchestrator (Anthropic + OpenAI vector store)")
        return ChatOrchestrator(
            inference=get_anthropic_client(),
            tools_registry=get_tools_registry(OpenAIVectorStore()),
        )

    logger.info(f"Creating development orchestrator for environment '{environment}'")
    delay = float(os.getenv("DEVELOPMENT_STREAM_DELAY", "1.0"))
    return ChatOrchestrator(inference=DevelopmentInference(delay=delay), tools_registry=ToolsRegistry())


_orchestrator: ChatOrchestrator | None = None


def get_orchestrator() -> ChatOrchestrator:
    """Get or create the orchestrator instance."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = create_orchestrator()
    return _orchestrator
