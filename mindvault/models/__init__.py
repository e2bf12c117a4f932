# Models package init
from mindvault.models.chat import ChatMessage, ChatSession
from mindvault.models.journal_entry import JournalEntry
from mindvault.models.wellness_check import WellnessCheck

__all__ = ["ChatMessage", "ChatSession", "JournalEntry", "WellnessCheck"]
