"""
Session module.

Handles:
- Join, leave, send and typing operations
- Routing inbound events to the chat state components
- User-facing notices
"""
