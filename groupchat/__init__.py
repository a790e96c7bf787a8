"""
Group chat client package.

This package contains the client-side chat functionality including:
- Connection state tracking and the event transport
- Presence, typing and message reconciliation
- The session controller that routes server events
- User interface and command-line front ends
- Configuration and utilities
"""

__version__ = '1.0.0'
