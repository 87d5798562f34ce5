"""Session context components"""

from .storage import SessionStore, StorageConfig

__all__ = [
    'SessionStore',
    'StorageConfig',
]
