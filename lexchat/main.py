"""FastAPI application serving the legal assistant."""

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lexchat import __version__
from lexchat.api.endpoints import router
from lexchat.utils.logging import setup_logging

setup_logging()

API_DESCRIPTION = """
Lexchat answers legal questions from a collection of statute articles.

Every answer is produced in two phases. The model first searches the article store
(`query_articles`) and reads promising articles in full (`fetch_articles_remote`), for at
most four tool rounds. It then streams its final answer, citing the articles it relied on.

**Typical flow**

1. `GET /api/session-token/generate` to obtain a session token (valid for 24 hours).
2. `POST /api/chat` with the whole conversation and the token in the `Session-Token` header.
3. Read the `text/event-stream` body: each `data:` frame carries `{"response": "<text>"}` and
   the stream ends with `data: [DONE]`.

Chat requests are limited per session token; a `429` means the limit was hit.
"""


def get_cors_origins() -> list[str]:
    """Allowed CORS origins from LEXCHAT_CORS_ORIGINS (comma separated, default any)."""
    raw = os.getenv("LEXCHAT_CORS_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


app = FastAPI(
    title="Lexchat Legal Assistant",
    summary="Tool-augmented legal Q&A with streamed answers.",
    description=API_DESCRIPTION,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Chat",
            "description": (
                "Streamed answers to a conversation as Server-Sent Events. Requires a valid "
                "`Session-Token` header and is rate limited per token."
            ),
        },
        {
            "name": "Session",
            "description": "Issue session tokens. A still-valid token presented in the header is returned as is.",
        },
        {
            "name": "Health",
            "description": "Service health monitoring and status checks.",
        },
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "lexchat.main:app",
        host=os.getenv("LEXCHAT_HOST", "0.0.0.0"),
        port=int(os.getenv("LEXCHAT_PORT", "8000")),
        reload=os.getenv("ENVIRONMENT", "development") != "production",
        log_level="info",
    )
