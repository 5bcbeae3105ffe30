"""
Studio Django HTTP adapter.
Thin framework glue over the engine services.
"""

from adapters.django_api.wiring import (
    ServiceDependencies,
    build_dependencies,
    create_dependencies,
    install_dependencies,
)

__all__ = [
    "ServiceDependencies",
    "build_dependencies",
    "create_dependencies",
    "install_dependencies",
]
