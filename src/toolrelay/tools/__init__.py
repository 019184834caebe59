"""Tool catalog and invocation."""

from toolrelay.tools.builtin import register_builtin_tools
from toolrelay.tools.registry import ToolDescriptor, ToolRegistry

__all__ = ["ToolDescriptor", "ToolRegistry", "register_builtin_tools"]
