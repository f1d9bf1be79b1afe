from .resource_state import ResourceState

__all__ = [
    "ResourceState",
]
