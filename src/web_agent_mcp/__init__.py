"""
MCP server exposing one long-lived Chrome session.

Console output and native dialogs are captured into bounded buffers, the
active iframe is tracked for every tool, and screenshots are kept under a
retention policy. Run with ``python -m web_agent_mcp``.
"""

__version__ = "0.1.0"
