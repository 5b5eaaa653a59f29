"""
Database module - async MongoDB connection using Motor.
"""

from common.database.mongodb import MongoDB

__all__ = ["MongoDB"]
