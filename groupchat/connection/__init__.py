"""
Connection module for the client-side event socket.

Handles:
- Connecting, connected and disconnected state tracking
- Framed event transport with automatic reconnection
- Listener subscriptions
"""
