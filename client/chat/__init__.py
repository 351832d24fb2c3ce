"""
Chat module for client-side messaging functionality.

Handles:
- Sending typed lines to the server
- Formatting received chat messages and notifications
"""
