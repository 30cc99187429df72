"""
RentMatch: ORM model registry.

Importing every model here ensures that Alembic (and any other tool that
inspects ``Base.metadata``) discovers all tables automatically.
"""

from app.models.user import User
from app.models.preferences import Preferences
from app.models.property import Property

__all__ = [
    "User",
    "Preferences",
    "Property",
]
