"""
Database configuration and models.
"""

from propvest.db.database import engine, SessionLocal, get_db
from propvest.db.models import Base

__all__ = ["engine", "SessionLocal", "get_db", "Base"]
