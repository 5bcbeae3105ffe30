"""
Studio Context - Public API
=============================
"""

from core.context.actor_context import ActorContext

__all__ = [
    "ActorContext",
]
