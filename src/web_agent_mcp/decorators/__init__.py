# web_agent_mcp/decorators/__init__.py
#
# Re-exports decorators from their respective modules.

from .ensure import ensure_session
from .locking import exclusive_session_access
from .envelope import tool_envelope, error_code

__all__ = [
    "ensure_session",
    "exclusive_session_access",
    "tool_envelope",
    "error_code",
]
