"""Infrastructure layer: database, repositories, graph engine, API client.

Depends on the domain layer and third-party libs (SQLAlchemy, NetworkX,
httpx). It must never import from services, commands, or output.
"""
