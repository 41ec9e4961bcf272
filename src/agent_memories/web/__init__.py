"""
Web interface for Agent Memories.

Provides the REST API and the mounted MCP endpoint.
"""
