"""
Article tools: list, get, search, get_since.

Readable by any caller; none of these require the owner role.
"""

import logging
import re
from typing import Literal, Optional

from pydantic import Field

from inkwell.core.errors import InvalidArgumentsError, NotFoundError
from inkwell.core.types import Filter, OrderBy
from inkwell.core.utils import format_article_md, get_watermark
from inkwell.mcp.registry import Tool
from inkwell.tools.common import ToolArgs, object_schema, parse_args, render_markdown

logger = logging.getLogger("Inkwell.tools.articles")

LIST_COLUMNS = [
    "id", "number", "title", "subtitle", "status", "type", "published_at",
    "views", "open_rate", "substack_url", "editorial_angle",
]
SINCE_COLUMNS = [
    "id", "number", "title", "subtitle", "type", "published_at",
    "views", "open_rate", "substack_url", "editorial_angle",
]

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}")


class ListArticlesArgs(ToolArgs):
    status: Optional[Literal["published", "draft", "archived"]] = None
    type: Optional[Literal["edition", "analysis", "special"]] = None
    limit: int = Field(default=20, ge=1)
    offset: int = Field(default=0, ge=0)


class GetArticleArgs(ToolArgs):
    id: Optional[str] = None
    number: Optional[int] = None


class SearchArticlesArgs(ToolArgs):
    query: str = Field(min_length=2)
    limit: int = Field(default=10, ge=1)


class ArticlesSinceArgs(ToolArgs):
    since_date: str
    limit: int = Field(default=20, ge=1)


def list_articles(args, ctx, env):
    params = parse_args(ListArticlesArgs, args)
    filters = []
    if params.status:
        filters.append(Filter(column="status", op="eq", value=params.status))
    if params.type:
        filters.append(Filter(column="type", op="eq", value=params.type))

    rows = env.store.query(
        table="articles",
        select=LIST_COLUMNS,
        filters=filters,
        order=[OrderBy(column="published_at", direction="desc", nulls="last")],
        limit=min(params.limit, 50),
        offset=params.offset,
    )
    return {
        "articles": rows,
        "count": len(rows),
        "offset": params.offset,
        "markdown": render_markdown(rows, format_article_md, env.config),
    }


def get_article(args, ctx, env):
    params = parse_args(GetArticleArgs, args)
    if not params.id and params.number is None:
        raise InvalidArgumentsError("Provide either id or number")

    if params.id:
        filters = [Filter(column="id", op="eq", value=params.id)]
    else:
        filters = [Filter(column="number", op="eq", value=params.number)]

    article = env.store.query_one(table="articles", filters=filters)
    if article is None:
        raise NotFoundError("Article not found")

    experts = env.store.raw(
        """SELECT e.id, e.name, e.affiliation, e.country
           FROM experts e
           JOIN article_experts ae ON ae.expert_id = e.id
           WHERE ae.article_id = ?""",
        [article["id"]],
    )

    markdown = format_article_md(article) + "\n\n" + get_watermark(env.config)
    return {**article, "experts": experts, "experts_count": len(experts), "markdown": markdown}


def search_articles(args, ctx, env):
    params = parse_args(SearchArticlesArgs, args)
    q = params.query.strip()
    pattern = f"%{q}%"

    rows = env.store.raw(
        """SELECT id, number, title, subtitle, status, type, published_at, views, substack_url, editorial_angle
           FROM articles
           WHERE status = 'published'
             AND (title LIKE ? COLLATE NOCASE
                  OR subtitle LIKE ? COLLATE NOCASE
                  OR editorial_angle LIKE ? COLLATE NOCASE)
           ORDER BY published_at DESC
           LIMIT ?""",
        [pattern, pattern, pattern, min(params.limit, 30)],
    )

    if env.config.track_usage:
        try:
            env.store.insert(
                "search_queries",
                {"tool_name": "search_articles", "query": q, "result_count": len(rows)},
            )
        except Exception as e:
            logger.warning("Failed to record search query: %s", e)

    return {
        "query": q,
        "articles": rows,
        "count": len(rows),
        "markdown": render_markdown(rows, format_article_md, env.config),
    }


def get_articles_since(args, ctx, env):
    params = parse_args(ArticlesSinceArgs, args)
    since = params.since_date.strip()
    if not _ISO_DATE.match(since):
        raise InvalidArgumentsError('since_date must be ISO 8601 (e.g. "2026-02-01")')

    rows = env.store.query(
        table="articles",
        select=SINCE_COLUMNS,
        filters=[
            Filter(column="status", op="eq", value="published"),
            Filter(column="published_at", op="gte", value=since),
        ],
        order=[OrderBy(column="published_at", direction="desc")],
        limit=min(params.limit, 50),
    )
    return {
        "since_date": since,
        "articles": rows,
        "count": len(rows),
        "markdown": render_markdown(rows, format_article_md, env.config),
    }


TOOLS = [
    Tool(
        name="list_articles",
        description="List newsletter articles with optional filters by status, type, and pagination.",
        input_schema=object_schema({
            "status": {"type": "string", "description": "Filter by status", "enum": ["published", "draft", "archived"]},
            "type": {"type": "string", "description": "Filter by content type", "enum": ["edition", "analysis", "special"]},
            "limit": {"type": "integer", "description": "Max results (default 20, max 50)", "minimum": 1, "maximum": 50},
            "offset": {"type": "integer", "description": "Pagination offset (default 0)", "minimum": 0},
        }),
        handler=list_articles,
    ),
    Tool(
        name="get_article",
        description="Get a single article by ID or edition number, including linked experts.",
        input_schema=object_schema({
            "id": {"type": "string", "description": "Article ID"},
            "number": {"type": "integer", "description": "Edition number"},
        }),
        handler=get_article,
    ),
    Tool(
        name="search_articles",
        description="Full-text search across published articles (title, subtitle, editorial_angle).",
        input_schema=object_schema({
            "query": {"type": "string", "description": "Search terms", "minLength": 2},
            "limit": {"type": "integer", "description": "Max results (default 10, max 30)", "minimum": 1, "maximum": 30},
        }, required=["query"]),
        handler=search_articles,
    ),
    Tool(
        name="get_articles_since",
        description="Get articles published since a given date.",
        input_schema=object_schema({
            "since_date": {"type": "string", "description": 'ISO 8601 date (e.g. "2026-02-01")'},
            "limit": {"type": "integer", "description": "Max results (default 20, max 50)", "minimum": 1, "maximum": 50},
        }, required=["since_date"]),
        handler=get_articles_since,
    ),
]
