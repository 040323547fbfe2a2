"""
Event registry persistence.

Events are stored as one JSON document on local disk.
"""

from .json_registry import JsonEventRegistry

__all__ = ["JsonEventRegistry"]
