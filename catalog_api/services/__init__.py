from . import catalog_service, fallback_policy

__all__ = [
    "catalog_service",
    "fallback_policy",
]
