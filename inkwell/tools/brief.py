"""Article preparation brief: active notes and sources gathered for one article."""

from typing import Dict, List

from inkwell.core.auth import require_owner
from inkwell.core.types import Filter, OrderBy
from inkwell.core.utils import get_watermark
from inkwell.mcp.registry import Tool
from inkwell.tools.common import ToolArgs, object_schema, parse_args


class PrepareBriefArgs(ToolArgs):
    target_article: str
    include_backlog: bool = True


def _article_label(env, article_id: str) -> str:
    article = env.store.query_one(
        table="articles",
        select=["id", "title", "number"],
        filters=[Filter(column="id", op="eq", value=article_id)],
    )
    if article is None:
        return article_id
    number = f"#{article['number']} " if article.get("number") else ""
    return f"{number}{article['title']}"


def collect_notes(env, article_id: str, include_backlog: bool) -> List[dict]:
    if include_backlog:
        return env.store.raw(
            """SELECT * FROM editorial_notes
               WHERE status = 'active' AND (target_article = ? OR target_article IS NULL)
               ORDER BY priority ASC, type ASC""",
            [article_id],
        )
    return env.store.query(
        table="editorial_notes",
        filters=[
            Filter(column="target_article", op="eq", value=article_id),
            Filter(column="status", op="eq", value="active"),
        ],
        order=[OrderBy(column="priority", direction="asc"), OrderBy(column="type", direction="asc")],
    )


def collect_sources(env, article_id: str, include_backlog: bool) -> List[dict]:
    sources = env.store.query(
        table="editorial_sources",
        filters=[Filter(column="target_article", op="eq", value=article_id)],
        order=[OrderBy(column="published_date", direction="desc", nulls="last")],
    )
    if include_backlog:
        seen = {s["id"] for s in sources}
        backlog = env.store.query(
            table="editorial_sources",
            filters=[
                Filter(column="target_article", op="is", value=None),
                Filter(column="status", op="eq", value="active"),
            ],
            order=[OrderBy(column="published_date", direction="desc")],
        )
        sources.extend(s for s in backlog if s["id"] not in seen)
    return sources


def group_notes(notes: List[dict]) -> Dict[str, List[dict]]:
    grouped: Dict[str, List[dict]] = {}
    for note in notes:
        grouped.setdefault(str(note["type"]), []).append(note)
    return grouped


def prepare_brief(args, ctx, env):
    require_owner(ctx)
    params = parse_args(PrepareBriefArgs, args)
    article_id = params.target_article

    label = _article_label(env, article_id)
    notes = collect_notes(env, article_id, params.include_backlog)
    sources = collect_sources(env, article_id, params.include_backlog)
    notes_by_type = group_notes(notes)

    active_unused = [s for s in sources if s["status"] == "active" and not s.get("used_in_article")]
    used = [s for s in sources if s.get("used_in_article") is not None]
    inactive = [s for s in sources if s["status"] == "inactive"]

    lines = [f"# Brief: {label}", "", "## Notes"]
    if not notes:
        lines.append("_No notes for this article_")
    for note_type, items in notes_by_type.items():
        lines.append(f"\n### {note_type.capitalize()}s")
        for n in items:
            backlog = " _(backlog)_" if n.get("target_article") is None else ""
            lines.append(f"- P{n['priority']} | {n['content']}{backlog}")

    lines += ["", "## Sources: Active & Unused"]
    if not active_unused:
        lines.append("_No unused sources_")
    for s in active_unused:
        backlog = " _(backlog)_" if s.get("target_article") is None else ""
        lines.append(f"- {s['title']} ({s.get('published_date') or '?'}){backlog}\n  {s['url']}")

    if used:
        lines += ["", "## Sources: Already Used"]
        for s in used:
            lines.append(f"- ~~{s['title']}~~ (used in {s['used_in_article']})\n  {s['url']}")

    if inactive:
        lines += ["", "## Sources: Inactive"]
        for s in inactive:
            lines.append(f"- ~~{s['title']}~~ (inactive)\n  {s['url']}")

    lines += ["", get_watermark(env.config)]

    return {
        "target_article": article_id,
        "article_label": label,
        "notes_count": len(notes),
        "notes_by_type": {k: len(v) for k, v in notes_by_type.items()},
        "sources_active_unused": len(active_unused),
        "sources_used": len(used),
        "sources_inactive": len(inactive),
        "markdown": "\n".join(lines),
    }


TOOLS = [
    Tool(
        name="prepare_brief",
        description=(
            "Generate an article preparation brief: aggregated notes + sources, "
            "organized by type and status. Owner only."
        ),
        input_schema=object_schema({
            "target_article": {"type": "string", "description": "Article ID to prepare the brief for"},
            "include_backlog": {"type": "boolean", "description": "Include backlog notes (default true)", "default": True},
        }, required=["target_article"]),
        handler=prepare_brief,
    ),
]
