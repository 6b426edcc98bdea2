"""
Consolidated Contentful MCP tool categories.

Each module exposes one async *_action router that dispatches on an action
name and returns a plain dict carrying a "_success" flag.
"""
