"""
Lobby module for server-side membership tracking.

Handles:
- Connection handle bookkeeping
- Lobby creation and membership
- Member counts and recipient snapshots
"""
