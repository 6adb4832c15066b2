"""
Voice templates: Markdown files describing how a draft should read.

Each ``<name>.md`` file holds ``## Section`` blocks. ``Description`` and
``Tone`` are free text; ``Structure``, ``Style`` and ``Formatting`` are
``- item`` bullet lists.
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Union

from pydantic import BaseModel, Field

logger = logging.getLogger("Inkwell.voice")

_HEADING = re.compile(r"^##\s+(.+)")


class VoiceTemplate(BaseModel):
    name: str
    description: str = ""
    tone: str = ""
    structure: List[str] = Field(default_factory=list)
    style: List[str] = Field(default_factory=list)
    formatting: List[str] = Field(default_factory=list)
    raw: str = ""


def _parse_sections(markdown: str) -> Dict[str, str]:
    sections: Dict[str, str] = {}
    current = ""
    content: List[str] = []

    for line in markdown.split("\n"):
        match = _HEADING.match(line)
        if match:
            if current and content:
                sections[current.lower()] = "\n".join(content).strip()
            current = match.group(1).strip()
            content = []
        else:
            content.append(line)

    if current and content:
        sections[current.lower()] = "\n".join(content).strip()
    return sections


def _extract_bullets(text: str) -> List[str]:
    return [re.sub(r"^-\s*", "", line.strip()).strip() for line in text.split("\n") if line.strip().startswith("-")]


def _first_line(markdown: str) -> str:
    for line in markdown.split("\n"):
        if line.strip() and not line.startswith("#"):
            return line.strip()
    return ""


def load_template(path: Union[str, Path]) -> VoiceTemplate:
    path = Path(path)
    raw = path.read_text(encoding="utf-8")
    sections = _parse_sections(raw)
    return VoiceTemplate(
        name=path.stem,
        description=sections.get("description") or _first_line(raw),
        tone=sections.get("tone", ""),
        structure=_extract_bullets(sections.get("structure", "")),
        style=_extract_bullets(sections.get("style", "")),
        formatting=_extract_bullets(sections.get("formatting", "")),
        raw=raw,
    )


def load_voice_templates(directory: Union[str, Path]) -> List[VoiceTemplate]:
    """Load every ``*.md`` file in ``directory``, sorted by name."""
    directory = Path(directory)
    if not directory.is_dir():
        logger.debug("Voice template directory %s does not exist", directory)
        return []
    return [load_template(p) for p in sorted(directory.glob("*.md"), key=lambda p: p.stem)]
