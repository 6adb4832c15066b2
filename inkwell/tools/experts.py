"""Expert lookup tools."""

from typing import Literal, Optional

from pydantic import Field

from inkwell.core.errors import InvalidArgumentsError, NotFoundError
from inkwell.core.types import Filter, OrderBy
from inkwell.core.utils import format_article_md, get_watermark
from inkwell.mcp.registry import Tool
from inkwell.tools.common import ToolArgs, object_schema, parse_args


class ListExpertsArgs(ToolArgs):
    tier: Optional[Literal[1, 2, 3]] = None
    country: Optional[str] = None
    limit: int = Field(default=20, ge=1)


class GetExpertArgs(ToolArgs):
    id: Optional[str] = None
    name: Optional[str] = None


def list_experts(args, ctx, env):
    params = parse_args(ListExpertsArgs, args)
    filters = []
    if params.tier is not None:
        filters.append(Filter(column="tier", op="eq", value=params.tier))
    if params.country:
        filters.append(Filter(column="country", op="eq", value=params.country.upper()))

    rows = env.store.query(
        table="experts",
        select=["id", "name", "affiliation", "expertise", "country", "tier", "times_cited"],
        filters=filters,
        order=[OrderBy(column="times_cited", direction="desc")],
        limit=min(params.limit, 50),
    )
    return {"experts": rows, "count": len(rows)}


def get_expert(args, ctx, env):
    params = parse_args(GetExpertArgs, args)
    if not params.id and not (params.name and params.name.strip()):
        raise InvalidArgumentsError("Provide either id or name")

    if params.id:
        expert = env.store.query_one(table="experts", filters=[Filter(column="id", op="eq", value=params.id)])
    else:
        expert = env.store.query_one(
            table="experts",
            filters=[Filter(column="name", op="ilike", value=f"%{params.name.strip()}%")],
        )
    if expert is None:
        raise NotFoundError("Expert not found")

    articles = env.store.raw(
        """SELECT a.id, a.title, a.published_at, a.substack_url, a.editorial_angle, a.number, a.type
           FROM articles a
           JOIN article_experts ae ON ae.article_id = a.id
           WHERE ae.expert_id = ?""",
        [expert["id"]],
    )

    heading = f"## {expert['name']}\n"
    if expert.get("affiliation"):
        heading += f"_{expert['affiliation']}_"
    if expert.get("country"):
        heading += f" ({expert['country']})"
    articles_md = "\n".join(format_article_md(a) for a in articles) or "_No linked articles_"
    markdown = f"{heading}\n\n### Articles ({len(articles)})\n{articles_md}\n\n{get_watermark(env.config)}"

    return {"expert": expert, "articles": articles, "articles_count": len(articles), "markdown": markdown}


TOOLS = [
    Tool(
        name="list_experts",
        description="List experts cited in the newsletter with optional filters by tier or country.",
        input_schema=object_schema({
            "tier": {"type": "integer", "description": "Expert tier (1=top, 2=mid, 3=emerging)", "enum": [1, 2, 3]},
            "country": {"type": "string", "description": 'ISO country code (e.g. "US", "FR")'},
            "limit": {"type": "integer", "description": "Max results (default 20, max 50)", "minimum": 1, "maximum": 50},
        }),
        handler=list_experts,
    ),
    Tool(
        name="get_expert",
        description="Get a single expert by ID or name (partial match), including linked articles.",
        input_schema=object_schema({
            "id": {"type": "string", "description": "Expert ID"},
            "name": {"type": "string", "description": "Expert name (partial match)"},
        }),
        handler=get_expert,
    ),
]
