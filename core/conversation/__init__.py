"""
Core conversation handling system.

This package provides the child-profile conversation engine with:
- In-process session storage with per-family serialization
- Entity extraction and age normalization
- Profile reconciliation and dialogue state resolution
- The orchestrating pipeline that handles each parent message
"""

from .context import SessionStore, StorageConfig
from .understanding import AgeNormalizer, EntityExtractor
from .orchestration import DialogueStateResolver, ProfileReconciler

__all__ = [
    # Context
    'SessionStore',
    'StorageConfig',

    # Understanding
    'AgeNormalizer',
    'EntityExtractor',

    # Orchestration
    'DialogueStateResolver',
    'ProfileReconciler',
]
