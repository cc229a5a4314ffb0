from .snapshots import StateSnapshot

__all__ = [
    'StateSnapshot',
]
