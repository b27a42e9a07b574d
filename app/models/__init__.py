"""
CoNekt — ORM model registry.

Importing every model here ensures that Alembic (and any other tool that
inspects ``Base.metadata``) discovers all tables automatically.
"""

from app.models.user import User
from app.models.match import Match

__all__ = [
    "User",
    "Match",
]
