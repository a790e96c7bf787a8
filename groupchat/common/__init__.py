"""
Shared definitions for the group chat client.

Handles:
- Event names and policy constants
- Wire data structures and payload builders
"""
