"""Chat relay: validates chat conversations and forwards them to a hosted
chat-completions provider."""

__version__ = "0.1.0"
