"""
Codacy findings package.

Resolves configured Codacy instances and aggregates their repository analysis
into a graded findings summary exposed as MCP tools.
"""

__all__ = []
