"""lmchat: terminal chat client for streaming LLM endpoints."""

__version__ = "1.0.0"
