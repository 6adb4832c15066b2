"""
Editorial note tools: add, list, update, clear.

All of them require the owner role. ``target_article="backlog"`` addresses
notes that are not attached to any article.
"""

from typing import List, Literal, Optional

from pydantic import Field

from inkwell.core.auth import require_owner
from inkwell.core.errors import InvalidArgumentsError, NotFoundError
from inkwell.core.types import Filter, OrderBy
from inkwell.core.utils import format_note_md, parse_json_array, utc_now_iso
from inkwell.mcp.registry import Tool
from inkwell.tools.common import BACKLOG, NOTE_TYPES, ToolArgs, object_schema, parse_args, render_markdown

NoteType = Literal["idea", "angle", "quote", "fact", "todo", "outline"]
NoteStatus = Literal["active", "used", "discarded"]


class AddNoteArgs(ToolArgs):
    type: NoteType
    content: str = Field(min_length=1)
    target_article: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    priority: int = Field(default=3, ge=1, le=5)


class ListNotesArgs(ToolArgs):
    target_article: Optional[str] = None
    type: Optional[NoteType] = None
    status: Optional[NoteStatus] = None
    tag: Optional[str] = None
    limit: int = Field(default=50, ge=1)


class UpdateNoteArgs(ToolArgs):
    id: str
    content: Optional[str] = None
    type: Optional[NoteType] = None
    target_article: Optional[str] = None
    status: Optional[NoteStatus] = None
    priority: Optional[int] = Field(default=None, ge=1, le=5)
    tags: Optional[List[str]] = None


class ClearNotesArgs(ToolArgs):
    id: Optional[str] = None
    target_article: Optional[str] = None
    status: Optional[Literal["used", "discarded"]] = None
    confirm: bool = False


def _target_filter(target_article: str) -> Filter:
    if target_article == BACKLOG:
        return Filter(column="target_article", op="is", value=None)
    return Filter(column="target_article", op="eq", value=target_article)


def _with_tags(note):
    return {**note, "tags": parse_json_array(note.get("tags"))}


def add_note(args, ctx, env):
    require_owner(ctx)
    params = parse_args(AddNoteArgs, args)

    note = env.store.insert("editorial_notes", {
        "type": params.type,
        "content": params.content,
        "target_article": params.target_article or None,
        "tags": params.tags,
        "priority": params.priority,
        "status": "active",
    })
    where = f" for article {note['target_article']}" if note.get("target_article") else " to backlog"
    return {**_with_tags(note), "message": f"Note added{where}"}


def list_notes(args, ctx, env):
    require_owner(ctx)
    params = parse_args(ListNotesArgs, args)

    filters = []
    if params.target_article is not None:
        filters.append(_target_filter(params.target_article))
    if params.type:
        filters.append(Filter(column="type", op="eq", value=params.type))
    filters.append(Filter(column="status", op="eq", value=params.status or "active"))
    if params.tag:
        filters.append(Filter(column="tags", op="cs", value=params.tag))

    rows = env.store.query(
        table="editorial_notes",
        filters=filters,
        order=[
            OrderBy(column="priority", direction="asc"),
            OrderBy(column="created_at", direction="desc"),
        ],
        limit=min(params.limit, 100),
    )
    notes = [_with_tags(r) for r in rows]
    return {
        "notes": notes,
        "count": len(notes),
        "markdown": render_markdown(notes, format_note_md, env.config, empty="_No notes found_"),
    }


def update_note(args, ctx, env):
    require_owner(ctx)
    params = parse_args(UpdateNoteArgs, args)

    patch = {}
    for field in ("content", "type", "status", "priority", "tags"):
        value = getattr(params, field)
        if value is not None:
            patch[field] = value
    if params.target_article is not None:
        patch["target_article"] = None if params.target_article == BACKLOG else params.target_article

    if not patch:
        raise InvalidArgumentsError("No fields to update")
    patch["updated_at"] = utc_now_iso()

    rows = env.store.update("editorial_notes", [Filter(column="id", op="eq", value=params.id)], patch)
    if not rows:
        raise NotFoundError("Note not found")
    return {**_with_tags(rows[0]), "message": "Note updated"}


def clear_notes(args, ctx, env):
    require_owner(ctx)
    params = parse_args(ClearNotesArgs, args)

    if params.id:
        deleted = env.store.delete("editorial_notes", [Filter(column="id", op="eq", value=params.id)])
        if not deleted:
            raise NotFoundError("Note not found")
        return {"deleted": 1, "message": "Note deleted"}

    filters = []
    if params.target_article is not None:
        filters.append(Filter(column="target_article", op="eq", value=params.target_article))
    if params.status:
        filters.append(Filter(column="status", op="eq", value=params.status))
    if not filters:
        raise InvalidArgumentsError("Provide id, target_article, or status to specify what to delete")

    count = env.store.count("editorial_notes", filters)
    if count == 0:
        return {"deleted": 0, "message": "No matching notes found"}

    if not params.confirm:
        return {
            "preview": True,
            "count": count,
            "message": f"{count} note(s) will be deleted. Call again with confirm: true to proceed.",
        }

    deleted = env.store.delete("editorial_notes", filters)
    return {"deleted": len(deleted), "message": f"{len(deleted)} note(s) cleared."}


TOOLS = [
    Tool(
        name="add_note",
        description="Add an editorial note (idea, angle, quote, fact, todo, outline) for an article or backlog. Owner only.",
        input_schema=object_schema({
            "type": {"type": "string", "enum": NOTE_TYPES, "description": "Note type"},
            "content": {"type": "string", "description": "Note content", "minLength": 1},
            "target_article": {"type": "string", "description": "Target article ID (omit for backlog)"},
            "tags": {"type": "array", "items": {"type": "string"}, "description": "Tags for filtering"},
            "priority": {"type": "integer", "minimum": 1, "maximum": 5, "description": "Priority 1-5 (default 3)"},
        }, required=["type", "content"]),
        handler=add_note,
    ),
    Tool(
        name="list_notes",
        description="List editorial notes with filters. Owner only.",
        input_schema=object_schema({
            "target_article": {"type": "string", "description": 'Filter by article ID (use "backlog" for unassigned)'},
            "type": {"type": "string", "enum": NOTE_TYPES},
            "status": {"type": "string", "enum": ["active", "used", "discarded"], "description": "Default: active"},
            "tag": {"type": "string", "description": "Filter by tag"},
            "limit": {"type": "integer", "minimum": 1, "maximum": 100, "description": "Max results (default 50)"},
        }),
        handler=list_notes,
    ),
    Tool(
        name="update_note",
        description="Update an editorial note. Owner only.",
        input_schema=object_schema({
            "id": {"type": "string", "description": "Note ID"},
            "content": {"type": "string"},
            "type": {"type": "string", "enum": NOTE_TYPES},
            "target_article": {"type": "string", "description": 'Article ID or "backlog" to unassign'},
            "status": {"type": "string", "enum": ["active", "used", "discarded"]},
            "priority": {"type": "integer", "minimum": 1, "maximum": 5},
            "tags": {"type": "array", "items": {"type": "string"}},
        }, required=["id"]),
        handler=update_note,
    ),
    Tool(
        name="clear_notes",
        description="Delete notes by ID, by article, or batch by status. Batch requires confirm=true. Owner only.",
        input_schema=object_schema({
            "id": {"type": "string", "description": "Delete a single note by ID"},
            "target_article": {"type": "string", "description": "Delete all notes for this article"},
            "status": {"type": "string", "enum": ["used", "discarded"], "description": "Delete all notes with this status"},
            "confirm": {"type": "boolean", "description": "Confirm batch deletion", "default": False},
        }),
        handler=clear_notes,
    ),
]
