"""MCP playtest server: python -m tapengine.mcp"""
