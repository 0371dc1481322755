"""MCP server exposing the flowkit tool over stdio or SSE."""
