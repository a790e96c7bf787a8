"""
Files module for client-side attachment handling.
"""
