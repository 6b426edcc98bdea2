"""
Contentful MCP Server - content management and AI Action tools over MCP.
"""

__version__ = "0.1.0"
