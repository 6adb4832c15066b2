"""Aggregate newsletter statistics."""

from inkwell.core.auth import require_owner
from inkwell.core.types import Filter
from inkwell.core.utils import round_rate
from inkwell.mcp.registry import Tool
from inkwell.tools.common import object_schema

TOP_TOOLS_LIMIT = 10


def get_stats(args, ctx, env):
    require_owner(ctx)
    store = env.store

    articles = store.raw("SELECT id, views, open_rate, status FROM articles")
    top_articles = store.raw(
        "SELECT id, title, number, views, substack_url FROM articles WHERE status = ? ORDER BY views DESC LIMIT 5",
        ["published"],
    )

    published = [a for a in articles if a["status"] == "published"]
    total_views = sum(int(a["views"] or 0) for a in published)
    avg_open_rate = (
        sum(float(a["open_rate"] or 0) for a in published) / len(published) if published else 0.0
    )

    active = [Filter(column="status", op="eq", value="active")]
    top_tools = store.raw(
        """SELECT tool_name, COUNT(*) AS calls
           FROM usage_stats
           GROUP BY tool_name
           ORDER BY calls DESC, tool_name ASC
           LIMIT ?""",
        [TOP_TOOLS_LIMIT],
    )

    return {
        "total_articles": len(articles),
        "published": len(published),
        "draft": sum(1 for a in articles if a["status"] == "draft"),
        "archived": sum(1 for a in articles if a["status"] == "archived"),
        "total_views": total_views,
        "avg_open_rate": round_rate(avg_open_rate),
        "top_5_by_views": top_articles,
        "active_notes": store.count("editorial_notes", active),
        "active_sources": store.count("editorial_sources", active),
        "top_tools": top_tools,
    }


TOOLS = [
    Tool(
        name="get_stats",
        description="Get aggregate newsletter statistics: article counts, engagement, top articles. Owner only.",
        input_schema=object_schema({}),
        handler=get_stats,
    ),
]
