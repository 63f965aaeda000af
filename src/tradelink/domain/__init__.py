"""Domain layer: account references, edge lifecycle, and error taxonomy.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
