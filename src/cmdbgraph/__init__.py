"""cmdbgraph: CI relationship graph with impact and dependency analysis."""

__version__ = "0.1.0"
