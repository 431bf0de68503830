from app.services.registry import ServiceRegistry, Outbound

__all__ = [
    "ServiceRegistry",
    "Outbound",
]
