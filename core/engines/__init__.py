"""
Studio Engine Services
======================
Shared command execution skeleton for every engine service.
"""

from core.engines.service import (
    EngineService,
    EventSinkProtocol,
    build_event,
    default_id_factory,
)

__all__ = [
    "EngineService",
    "EventSinkProtocol",
    "build_event",
    "default_id_factory",
]
