"""
Shared constants for the group chat client.

This module contains the event names and policy constants used across the
connection, chat and session components.
"""

# Network Configuration
DEFAULT_HOST = 'localhost'
DEFAULT_PORT = 3001

# Timeouts (seconds)
CONNECTION_TIMEOUT = 8.0
RECONNECT_ATTEMPTS = 2
RECONNECT_DELAY = 0.5
DISCONNECT_GRACE_PERIOD = 5.0
TYPING_DEBOUNCE = 1.0
RELOAD_DELAY = 1.0

# File Transfer
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
ALLOWED_MIME_TYPES = (
    'image/jpeg',
    'image/png',
    'image/gif',
    'application/pdf',
    'text/plain',
)

# Login
MAX_USERNAME_LENGTH = 20
DEFAULT_AVATAR = '👤'
AVATARS = ('👤', '😊', '🚀', '🎨', '🎵', '⚡', '🌟', '🎯', '🔥', '💎', '🦄', '🎭')


# Event Names
class Events:
    # Produced locally by the transport
    CONNECT = 'connect'
    DISCONNECT = 'disconnect'
    CONNECT_ERROR = 'connect_error'

    # Client to Server
    JOIN = 'join'
    SEND_MESSAGE = 'sendMessage'
    TYPING = 'typing'

    # Server to Client
    RECENT_MESSAGES = 'recentMessages'
    JOIN_SUCCESS = 'joinSuccess'
    ONLINE_USERS = 'onlineUsers'
    USERS_UPDATE = 'usersUpdate'
    NEW_MESSAGE = 'newMessage'
    USER_JOINED = 'userJoined'
    USER_LEFT = 'userLeft'
    USER_TYPING = 'userTyping'
    ERROR = 'error'


# Message Kinds
class MessageKinds:
    TEXT = 'text'
    FILE = 'file'
    IMAGE = 'image'

    ALL = (TEXT, FILE, IMAGE)


# Disconnect reason used when the client tears the connection down itself
CLIENT_DISCONNECT_REASON = 'io client disconnect'
