"""Conversation orchestration components"""

from .state_manager import DialogueStateResolver
from .reconciler import ProfileReconciler, ReconcileResult

__all__ = [
    'DialogueStateResolver',
    'ProfileReconciler',
    'ReconcileResult',
]
