from .registry import ConnectionHandle, ConnectionRegistry, registry

__all__ = ["ConnectionHandle", "ConnectionRegistry", "registry"]
