"""
Chat module for client-side conversation state.

Handles:
- Online user roster (presence)
- Users currently typing
- Ordered message log
- Outbound chat messages and typing pulses
"""
