"""
UI Development Power context router.

Routes a user's UI/UX request to the steering files (knowledge modules) that
should be attached to the assistant's context, tracks which modules each
conversation has already seen, and reports which MCP tool integrations are
configured in the current environment.
"""

__version__ = "1.0.0"
