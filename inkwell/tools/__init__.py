"""
Tool catalog.

``build_registry()`` assembles every tool module's ``TOOLS`` list in a fixed
order; that order is what ``tools/list`` reports.
"""

from inkwell.mcp.registry import ToolRegistry
from inkwell.tools import articles, brief, experts, importer, notes, sources, stats, tags, write

TOOL_MODULES = (articles, experts, tags, notes, sources, brief, stats, importer, write)


def build_registry() -> ToolRegistry:
    registry = ToolRegistry()
    for module in TOOL_MODULES:
        for tool in module.TOOLS:
            registry.register(tool)
    return registry


__all__ = ["TOOL_MODULES", "build_registry"]
