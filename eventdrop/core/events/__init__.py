"""
Event domain model.
"""

from .models import Event, is_valid_event_id, new_event_id

__all__ = ["Event", "is_valid_event_id", "new_event_id"]
