"""
Chat module for server-side messaging functionality.

Handles:
- Lobby broadcast of chat messages
- Server notifications
- Slash-command interpretation
"""
