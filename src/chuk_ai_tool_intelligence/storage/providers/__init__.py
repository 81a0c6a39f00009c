# chuk_ai_tool_intelligence/storage/providers/__init__.py
"""Storage provider implementations."""
