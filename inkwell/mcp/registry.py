"""
Tool registry.

The catalog is built once at startup and handed to the dispatcher; there is
no module-level registry.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

import requests

from inkwell.core.config import InkwellConfig
from inkwell.core.types import AuthContext
from inkwell.store.sqlite_store import SQLiteStore


@dataclass
class Env:
    """
    What a tool handler may touch: the store and the static configuration.

    ``http`` is handed to network connectors; None lets each one open its
    own session.
    """
    store: SQLiteStore
    config: InkwellConfig
    http: Optional[requests.Session] = None


ToolHandler = Callable[[Dict[str, Any], Optional[AuthContext], Env], Any]


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    input_schema: Dict[str, Any]
    handler: ToolHandler

    def definition(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


class ToolRegistry:
    def __init__(self, tools: Optional[Iterable[Tool]] = None):
        self._tools: Dict[str, Tool] = {}
        for tool in tools or ():
            self.register(tool)

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool

    def get(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def names(self) -> List[str]:
        return list(self._tools)

    def definitions(self) -> List[Dict[str, Any]]:
        return [tool.definition() for tool in self._tools.values()]

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)
