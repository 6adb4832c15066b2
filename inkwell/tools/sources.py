"""Editorial source tools: save, list, deactivate, mark_used. Owner only."""

from typing import Literal, Optional

from pydantic import Field

from inkwell.core.auth import require_owner
from inkwell.core.errors import NotFoundError
from inkwell.core.types import Filter, OrderBy
from inkwell.core.utils import format_source_md, utc_now_iso
from inkwell.mcp.registry import Tool
from inkwell.tools.common import BACKLOG, SOURCE_TYPES, ToolArgs, object_schema, parse_args, render_markdown

SourceType = Literal["article", "report", "dataset", "interview", "video", "podcast", "social", "other"]


class SaveSourceArgs(ToolArgs):
    url: str = Field(min_length=1)
    title: str = Field(min_length=1)
    published_date: Optional[str] = None
    target_article: Optional[str] = None
    type: Optional[SourceType] = None
    description: Optional[str] = None
    key_quotes: Optional[str] = None


class ListSourcesArgs(ToolArgs):
    target_article: Optional[str] = None
    status: Optional[Literal["active", "inactive"]] = None
    type: Optional[SourceType] = None
    used: Optional[bool] = None
    limit: int = Field(default=50, ge=1)


class DeactivateSourceArgs(ToolArgs):
    id: str
    reason: Optional[str] = None


class MarkSourceUsedArgs(ToolArgs):
    id: str
    article_id: str


def save_source(args, ctx, env):
    require_owner(ctx)
    params = parse_args(SaveSourceArgs, args)
    url = params.url.strip()

    existing = env.store.query_one(table="editorial_sources", filters=[Filter(column="url", op="eq", value=url)])
    if existing is not None:
        return {
            "duplicate": True,
            "existing_id": existing["id"],
            "existing_title": existing["title"],
            "message": "This URL already exists in editorial sources",
        }

    source = env.store.insert("editorial_sources", {
        "url": url,
        "title": params.title.strip(),
        "published_date": params.published_date or None,
        "target_article": params.target_article or None,
        "type": params.type,
        "description": params.description or None,
        "key_quotes": params.key_quotes or None,
        "status": "active",
    })
    where = f" for article {source['target_article']}" if source.get("target_article") else ""
    return {**source, "message": f"Source saved{where}"}


def list_sources(args, ctx, env):
    require_owner(ctx)
    params = parse_args(ListSourcesArgs, args)

    filters = []
    if params.target_article is not None:
        if params.target_article == BACKLOG:
            filters.append(Filter(column="target_article", op="is", value=None))
        else:
            filters.append(Filter(column="target_article", op="eq", value=params.target_article))
    if params.status:
        filters.append(Filter(column="status", op="eq", value=params.status))
    if params.type:
        filters.append(Filter(column="type", op="eq", value=params.type))
    if params.used is True:
        # NULL != '' is never true, so this keeps only sources with an article set.
        filters.append(Filter(column="used_in_article", op="neq", value=""))
    elif params.used is False:
        filters.append(Filter(column="used_in_article", op="is", value=None))

    rows = env.store.query(
        table="editorial_sources",
        filters=filters,
        order=[
            OrderBy(column="published_date", direction="desc", nulls="last"),
            OrderBy(column="created_at", direction="desc"),
        ],
        limit=min(params.limit, 100),
    )
    return {
        "sources": rows,
        "count": len(rows),
        "markdown": render_markdown(rows, format_source_md, env.config, empty="_No sources found_"),
    }


def deactivate_source(args, ctx, env):
    require_owner(ctx)
    params = parse_args(DeactivateSourceArgs, args)
    by_id = [Filter(column="id", op="eq", value=params.id)]

    existing = env.store.query_one(table="editorial_sources", filters=by_id)
    if existing is None:
        raise NotFoundError("Source not found")

    patch = {"status": "inactive", "updated_at": utc_now_iso()}
    if params.reason:
        marker = f"[DEACTIVATED: {params.reason}]"
        prev = existing.get("description") or ""
        patch["description"] = f"{prev}\n{marker}" if prev else marker

    rows = env.store.update("editorial_sources", by_id, patch)
    if not rows:
        raise NotFoundError("Source not found")
    return {**rows[0], "message": f"Source deactivated: {existing['title']}"}


def mark_source_used(args, ctx, env):
    require_owner(ctx)
    params = parse_args(MarkSourceUsedArgs, args)
    now = utc_now_iso()

    rows = env.store.update(
        "editorial_sources",
        [Filter(column="id", op="eq", value=params.id)],
        {"used_in_article": params.article_id, "used_at": now, "updated_at": now},
    )
    if not rows:
        raise NotFoundError("Source not found")
    return {
        "id": rows[0]["id"],
        "title": rows[0]["title"],
        "used_in_article": params.article_id,
        "message": "Source marked as used",
    }


TOOLS = [
    Tool(
        name="save_source",
        description="Save a dated editorial source for research. Deduplicates by URL. Owner only.",
        input_schema=object_schema({
            "url": {"type": "string", "description": "Full URL of the source"},
            "title": {"type": "string", "description": "Source title", "minLength": 1},
            "published_date": {"type": "string", "description": "Publication date YYYY-MM-DD"},
            "target_article": {"type": "string", "description": "Target article ID"},
            "type": {"type": "string", "enum": SOURCE_TYPES},
            "description": {"type": "string", "description": "Relevance notes"},
            "key_quotes": {"type": "string", "description": "Notable quotes"},
        }, required=["url", "title"]),
        handler=save_source,
    ),
    Tool(
        name="list_sources",
        description="List editorial sources with used/unused indicator. Owner only.",
        input_schema=object_schema({
            "target_article": {"type": "string", "description": 'Filter by article ID (use "backlog" for unassigned)'},
            "status": {"type": "string", "enum": ["active", "inactive"]},
            "type": {"type": "string", "enum": SOURCE_TYPES},
            "used": {"type": "boolean", "description": "true = only used, false = only unused"},
            "limit": {"type": "integer", "minimum": 1, "maximum": 100, "description": "Max results (default 50)"},
        }),
        handler=list_sources,
    ),
    Tool(
        name="deactivate_source",
        description="Mark an editorial source as inactive. Does not delete. Owner only.",
        input_schema=object_schema({
            "id": {"type": "string", "description": "Source ID"},
            "reason": {"type": "string", "description": "Reason for deactivation"},
        }, required=["id"]),
        handler=deactivate_source,
    ),
    Tool(
        name="mark_source_used",
        description="Mark an editorial source as used in a specific article. Owner only.",
        input_schema=object_schema({
            "id": {"type": "string", "description": "Source ID"},
            "article_id": {"type": "string", "description": "Article ID where the source was used"},
        }, required=["id", "article_id"]),
        handler=mark_source_used,
    ),
]
