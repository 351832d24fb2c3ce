"""
Server package for the Lobby Chat relay.

This package contains all server-side functionality including:
- Connection registry and lobby membership
- Slash-command handling
- Lobby broadcast
- Configuration and utilities
"""
