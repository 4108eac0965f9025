"""Model Context Protocol server exposing aws-labelling operations."""

from .server import NamingMCPServer, run_stdio_server

__all__ = ["NamingMCPServer", "run_stdio_server"]
