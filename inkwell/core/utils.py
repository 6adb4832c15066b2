"""
Inkwell Formatting Helpers
--------------------------
Markdown renderers shared by the tool layer, plus the one-decimal rounding
rule used for every rate the server reports.
"""

import json
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, List, Mapping, Optional, Union

Number = Union[int, float]


def round_rate(value: Optional[Number]) -> float:
    """
    Round to one decimal place, halves away from zero.

    The float is converted through its shortest repr so that 12.35 rounds to
    12.4 even though the binary value sits just below the half.
    """
    if value is None:
        return 0.0
    quantized = Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return float(quantized)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def get_watermark(config: Any) -> str:
    return f"---\n_{config.watermark}_"


def _fmt_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_json_array(value: Any) -> List[str]:
    """Decode a JSON-array text column; anything else yields an empty list."""
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    if isinstance(value, str) and value.startswith("["):
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError:
            return []
        if isinstance(decoded, list):
            return [str(v) for v in decoded]
    return []


def format_article_md(article: Mapping[str, Any]) -> str:
    num = f"#{article['number']}" if article.get("number") is not None else ""
    title = article.get("title") or "Untitled"
    kind = f" [{article['type']}]" if article.get("type") else ""
    date = f" ({str(article['published_at'])[:10]})" if article.get("published_at") else ""
    url = f" - [Read]({article['substack_url']})" if article.get("substack_url") else ""
    angle = f"\n  _{article['editorial_angle']}_" if article.get("editorial_angle") else ""

    stats = []
    if article.get("views"):
        stats.append(f"{_fmt_number(article['views'])} views")
    if article.get("open_rate"):
        stats.append(f"{_fmt_number(article['open_rate'])}% open")
    stats_str = f" | {', '.join(stats)}" if stats else ""

    return f"- **{num} {title}**{kind}{date}{stats_str}{url}{angle}"


def format_note_md(note: Mapping[str, Any]) -> str:
    article = f"Article {note['target_article']}" if note.get("target_article") else "Backlog"
    tags = parse_json_array(note.get("tags"))
    tags_str = f" [{', '.join(tags)}]" if tags else ""
    prio = f" P{note.get('priority')}" if note.get("priority") != 3 else ""
    return (
        f"- **[{str(note.get('type')).upper()}]** {note.get('content')}\n"
        f"  _{article}{prio} | {note.get('status')}{tags_str} | {note.get('id')}_"
    )


def format_source_md(source: Mapping[str, Any]) -> str:
    date = source.get("published_date") or "?"
    if source.get("status") == "inactive":
        prefix = "[INACTIVE]"
    elif source.get("used_in_article"):
        prefix = f"[USED in {source['used_in_article']}]"
    else:
        prefix = "[UNUSED]"
    return (
        f"- {prefix} {source.get('title')} ({date})\n"
        f"  {source.get('url')}\n"
        f"  _{source.get('type') or 'other'} | {source.get('id')}_"
    )
