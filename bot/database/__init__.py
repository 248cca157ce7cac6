from .manager import DatabaseManager, db_manager
from .models import Base

__all__ = [
    "DatabaseManager",
    "db_manager",
    "Base",
]
