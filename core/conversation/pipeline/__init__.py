"""Conversation processing pipeline"""

from .processor import ConversationOrchestrator

__all__ = [
    'ConversationOrchestrator',
]
