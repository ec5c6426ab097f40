"""Session memory for patchwise."""

from patchwise.memory.conversation import ConversationEntry, ConversationHistory, Outcome

__all__ = ["ConversationEntry", "ConversationHistory", "Outcome"]
