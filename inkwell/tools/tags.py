"""Tag listing tool."""

from typing import Literal, Optional

from pydantic import Field

from inkwell.core.types import Filter, OrderBy
from inkwell.mcp.registry import Tool
from inkwell.tools.common import ToolArgs, object_schema, parse_args

TAG_CATEGORIES = ["platform", "business", "trend", "tech", "event"]


class ListTagsArgs(ToolArgs):
    category: Optional[Literal["platform", "business", "trend", "tech", "event"]] = None
    limit: int = Field(default=50, ge=1)


def list_tags(args, ctx, env):
    params = parse_args(ListTagsArgs, args)
    filters = []
    if params.category:
        filters.append(Filter(column="category", op="eq", value=params.category))

    rows = env.store.query(
        table="tags",
        select=["id", "name", "category", "description"],
        filters=filters,
        order=[OrderBy(column="name", direction="asc")],
        limit=min(params.limit, 200),
    )
    return {"tags": rows, "count": len(rows)}


TOOLS = [
    Tool(
        name="list_tags",
        description="List tags used in the newsletter, optionally filtered by category.",
        input_schema=object_schema({
            "category": {"type": "string", "description": "Tag category", "enum": TAG_CATEGORIES},
            "limit": {"type": "integer", "description": "Max results (default 50)", "minimum": 1, "maximum": 200},
        }),
        handler=list_tags,
    ),
]
