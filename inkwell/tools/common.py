"""Helpers shared by the tool modules."""

from typing import Any, Callable, Dict, Iterable, Mapping, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from inkwell.core.errors import InvalidArgumentsError
from inkwell.core.utils import get_watermark

ArgsT = TypeVar("ArgsT", bound=BaseModel)

NOTE_TYPES = ["idea", "angle", "quote", "fact", "todo", "outline"]
SOURCE_TYPES = ["article", "report", "dataset", "interview", "video", "podcast", "social", "other"]

BACKLOG = "backlog"


class ToolArgs(BaseModel):
    """Base for tool argument models. Unknown keys are ignored."""
    model_config = ConfigDict(extra="ignore")


def parse_args(model: Type[ArgsT], args: Mapping[str, Any]) -> ArgsT:
    try:
        return model.model_validate(dict(args))
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}" for err in e.errors()
        )
        raise InvalidArgumentsError(f"Invalid arguments: {problems}") from e


def render_markdown(
    rows: Iterable[Mapping[str, Any]],
    formatter: Callable[[Mapping[str, Any]], str],
    config: Any,
    empty: str = "",
) -> str:
    """Format rows one per line and close with the watermark."""
    lines = [formatter(row) for row in rows]
    body = "\n".join(lines) if lines else empty
    return f"{body}\n\n{get_watermark(config)}"


def object_schema(properties: Dict[str, Any], required=None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = list(required)
    return schema
