"""Domain layer: relationship types, CI value types, trees, summaries.

This layer depends only on stdlib.
It must never import from services, infrastructure, commands, or config.
"""
