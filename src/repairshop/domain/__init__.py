"""Domain layer for repairshop application.

Services are imported from their own modules; this package only re-exports
the dependency-free entities and errors so the database layer can import
them without pulling in the services.
"""

from repairshop.domain import entities, errors

__all__ = ["entities", "errors"]
