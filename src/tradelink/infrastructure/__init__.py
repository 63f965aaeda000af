"""Infrastructure layer: database, relationship store, directory, graph.

This layer depends on stdlib and third-party libs (SQLAlchemy, NetworkX)
plus the domain layer's value types. It must never import from services,
commands, or output.
"""
