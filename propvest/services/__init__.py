"""
Services for persistence-backed investment operations.
"""

from propvest.services import investments

__all__ = ["investments"]
