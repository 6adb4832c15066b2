"""Writing tools: list_voice_templates, draft_article. Owner only."""

from typing import List, Optional

from inkwell.core.auth import require_owner
from inkwell.core.errors import InvalidArgumentsError
from inkwell.core.types import Filter
from inkwell.core.utils import get_watermark
from inkwell.mcp.registry import Tool
from inkwell.tools.common import ToolArgs, object_schema, parse_args
from inkwell.voice import VoiceTemplate, load_voice_templates

DEFAULT_VOICE = "default"


class ListVoiceTemplatesArgs(ToolArgs):
    templates_dir: Optional[str] = None


class DraftArticleArgs(ToolArgs):
    target_article: str
    voice: str = DEFAULT_VOICE
    templates_dir: Optional[str] = None
    title: Optional[str] = None
    focus: Optional[str] = None


def _templates_dir(env, override: Optional[str]) -> str:
    return override or env.config.templates_dir


def list_voice_templates(args, ctx, env):
    require_owner(ctx)
    params = parse_args(ListVoiceTemplatesArgs, args)
    directory = _templates_dir(env, params.templates_dir)
    templates = load_voice_templates(directory)

    watermark = get_watermark(env.config)
    if templates:
        body = "\n".join(f"- **{t.name}**: {t.description}\n  Tone: {t.tone}" for t in templates)
    else:
        body = f"_No voice templates found in {directory}_"

    return {
        "templates": [
            {
                "name": t.name,
                "description": t.description,
                "tone": t.tone,
                "structure_points": len(t.structure),
                "style_points": len(t.style),
            }
            for t in templates
        ],
        "count": len(templates),
        "directory": directory,
        "markdown": f"{body}\n\n{watermark}",
    }


def _pick_voice(templates: List[VoiceTemplate], name: str) -> VoiceTemplate:
    for template in templates:
        if template.name == name:
            return template
    if templates:
        return templates[0]
    raise InvalidArgumentsError(f'Voice template "{name}" not found. No templates available.')


def _bullets(notes, prefix: str = "- ") -> List[str]:
    return [f"{prefix}{n['content']}" for n in notes]


def draft_lines(title: str, voice: VoiceTemplate, notes: List[dict], sources: List[dict], focus: Optional[str]) -> List[str]:
    lines = [f"# {title}", ""]
    if focus:
        lines += [f"> **Focus**: {focus}", ""]
    lines += [f"> **Voice**: {voice.name}: {voice.tone}", ""]

    facts = [n for n in notes if n["type"] in ("fact", "quote")]
    if facts:
        lines += ["## Key Facts", *_bullets(facts), ""]

    angles = [n for n in notes if n["type"] in ("angle", "idea")]
    if angles:
        lines.append("## Angles to Explore")
        for n in angles:
            prio = f" (P{n['priority']})" if n.get("priority") != 3 else ""
            lines.append(f"- {n['content']}{prio}")
        lines.append("")

    outline = [n for n in notes if n["type"] == "outline"]
    if outline:
        lines += ["## Outline", *(str(n["content"]) for n in outline), ""]

    if voice.structure:
        lines += ["## Draft", ""]
        for point in voice.structure:
            lines += [f"### {point}", "", "_[Write this section]_", ""]

    if sources:
        lines.append("## Sources Available")
        for s in sources:
            lines.append(f"- [{s['title']}]({s['url']}) ({s.get('published_date') or '?'})")
            if s.get("key_quotes"):
                lines.append(f"  > {s['key_quotes']}")
        lines.append("")

    todos = [n for n in notes if n["type"] == "todo"]
    if todos:
        lines += ["## TODOs", *_bullets(todos, "- [ ] "), ""]

    if voice.style:
        lines += ["---", f"_Style reminders ({voice.name}):_"]
        lines += [f"_- {s}_" for s in voice.style]
    return lines


def draft_article(args, ctx, env):
    require_owner(ctx)
    params = parse_args(DraftArticleArgs, args)
    article_id = params.target_article

    voice = _pick_voice(load_voice_templates(_templates_dir(env, params.templates_dir)), params.voice)

    article = env.store.query_one(
        table="articles",
        select=["id", "title"],
        filters=[Filter(column="id", op="eq", value=article_id)],
    )
    title = params.title or (article["title"] if article else "Untitled")

    notes = env.store.raw(
        """SELECT * FROM editorial_notes
           WHERE status = 'active' AND (target_article = ? OR target_article IS NULL)
           ORDER BY priority ASC, type ASC""",
        [article_id],
    )
    sources = env.store.raw(
        """SELECT * FROM editorial_sources
           WHERE status = 'active' AND (target_article = ? OR target_article IS NULL)
             AND used_in_article IS NULL
           ORDER BY published_date DESC""",
        [article_id],
    )

    lines = draft_lines(title, voice, notes, sources, params.focus)
    lines += ["", get_watermark(env.config)]
    markdown = "\n".join(lines)

    return {
        "target_article": article_id,
        "title": title,
        "voice": voice.name,
        "notes_used": len(notes),
        "sources_available": len(sources),
        "draft_length": len(markdown),
        "markdown": markdown,
    }


TOOLS = [
    Tool(
        name="list_voice_templates",
        description="List available voice/style templates for article drafting. Owner only.",
        input_schema=object_schema({
            "templates_dir": {"type": "string", "description": "Custom templates directory path"},
        }),
        handler=list_voice_templates,
    ),
    Tool(
        name="draft_article",
        description=(
            "Generate a structured article draft from a brief (notes + sources) using a voice template. "
            "Returns a markdown draft with sections based on collected material. Owner only."
        ),
        input_schema=object_schema({
            "target_article": {"type": "string", "description": "Article ID to draft for"},
            "voice": {"type": "string", "description": 'Voice template name (default: "default")'},
            "templates_dir": {"type": "string", "description": "Custom templates directory"},
            "title": {"type": "string", "description": "Override article title"},
            "focus": {"type": "string", "description": "Specific angle or focus for this draft"},
        }, required=["target_article"]),
        handler=draft_article,
    ),
]
