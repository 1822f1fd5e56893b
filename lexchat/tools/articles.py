"""Article search and retrieval tools."""

import json

from pydantic import BaseModel, Field

from lexchat.clients.vector_store import ArticleStore
from lexchat.tools.base import ToolDefinition


class QueryArticlesInput(BaseModel):
    """Input schema for the article search tool."""

    question: str = Field(..., description="The user's question to search articles for")


class FetchArticleInput(BaseModel):
    """Input schema for the article retrieval tool."""

    file_id: str = Field(..., description="The file_id of the article to retrieve content for")


def create_query_articles_tool(store: ArticleStore) -> ToolDefinition:
    async def query_articles_handler(params: QueryArticlesInput) -> str:
        hits = await store.search(params.question)
        return json.dumps([hit.as_dict() for hit in hits], indent=1)

    return ToolDefinition(
        name="query_articles",
        description="Query the articles based on a question",
        input_schema_class=QueryArticlesInput,
        handler=query_articles_handler,
    )


def create_fetch_article_tool(store: ArticleStore) -> ToolDefinition:
    async def fetch_article_handler(params: FetchArticleInput) -> str:
        return await store.fetch(params.file_id)

    return ToolDefinition(
        name="fetch_articles_remote",
        description="Fetch the full content of an article by its file_id",
        input_schema_class=FetchArticleInput,
        handler=fetch_article_handler,
    )
