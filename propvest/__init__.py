"""
PropVest: property investment returns and withdrawal calculations.
"""

__version__ = "0.1.0"
