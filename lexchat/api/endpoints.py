"""API endpoints for the legal chat service."""

from collections.abc import AsyncIterator
from datetime import UTC, datetime

from fastapi import APIRouter, Header, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse

from lexchat import __version__
from lexchat.models.conversation import ChatRequest, ErrorResponse, HealthResponse, SessionTokenResponse
from lexchat.services.conversation import get_orchestrator
from lexchat.services.rate_limit import rate_limiter
from lexchat.services.session_tokens import session_token_service
from lexchat.utils.logging import get_logger
from lexchat.utils.sse import DONE_SENTINEL, format_content_event, format_event

logger = get_logger(__name__)

router = APIRouter()

SESSION_TOKEN_HEADER = "Session-Token"


@router.get("/api/session-token/generate", response_model=SessionTokenResponse, tags=["Session"])
async def generate_session_token(
    session_token: str = Header(default="", alias=SESSION_TOKEN_HEADER),
) -> SessionTokenResponse:
    """Issue a session credential, reusing the presented one while it is still valid."""
    return SessionTokenResponse(token=session_token_service.generate_token(session_token))


@router.api_route("/api/chat", methods=["GET", "POST", "PUT", "PATCH", "DELETE"], tags=["Chat"])
async def handle_chat(
    request: Request,
    session_token: str = Header(default="", alias=SESSION_TOKEN_HEADER),
) -> Response:
    """Answer a conversation as a stream of Server-Sent Events.

    The credential and rate gates run before the method and body are looked at.
    """
    if not session_token_service.verify_token(session_token):
        logger.warning("Rejected chat request with invalid session token")
        return PlainTextResponse("Invalid session token", status_code=401)

    if rate_limiter.is_rate_limited(session_token):
        return PlainTextResponse("Too many requests", status_code=429)

    if request.method != "POST":
        return PlainTextResponse("Method not allowed", status_code=405)

    try:
        chat_request = ChatRequest.model_validate(await request.json())
        logger.info(f"Processing chat request with {len(chat_request.messages)} messages")
        chunks = await get_orchestrator().start(chat_request.messages)
    except Exception as e:
        logger.error(f"Error processing chat request: {e}", exc_info=True)
        return JSONResponse(ErrorResponse(error="Failed to process request").model_dump(), status_code=500)

    return StreamingResponse(
        _event_stream(chunks),
        media_type="text/event-stream",
        headers={"cache-control": "no-cache", "connection": "keep-alive"},
    )


async def _event_stream(chunks: AsyncIterator[str]) -> AsyncIterator[str]:
    try:
        async for chunk in chunks:
            if chunk:
                yield format_content_event(chunk)
    except Exception as e:
        # Headers are already sent; end the stream without the sentinel
        logger.error(f"Stream interrupted: {e}", exc_info=True)
        return
    yield format_event(DONE_SENTINEL)


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=__version__,
    )
