"""
Moderación: estados del listing y operaciones de moderadores.
"""

from vitrina.moderation.state_machine import ListingState, ModerationStateMachine
from vitrina.moderation.service import ModerationService

__all__ = [
    "ListingState",
    "ModerationStateMachine",
    "ModerationService",
]
