"""
Client package for the Lobby Chat relay.

This package contains all client-side functionality including:
- Chat messaging
- Terminal and PyQt6 user interfaces
- Configuration and utilities
"""
