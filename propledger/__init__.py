"""PropLedger - property listing and sale transaction backend"""

__version__ = "1.0.0"
