"""
Protocol definitions for the group chat client.

This module defines the data structures exchanged with the chat server and
the builders for outbound event payloads. Payloads on the wire use camelCase
keys; the dataclasses below use snake_case and convert with from_dict/to_dict.
"""

import json
from typing import Dict, Any, Optional, List, Tuple
from dataclasses import dataclass
from datetime import datetime, timezone

from groupchat.common.constants import DEFAULT_AVATAR, MessageKinds
from groupchat.utils.logger import logger


@dataclass(frozen=True)
class User:
    """User information structure."""
    id: str
    username: str
    avatar: str = DEFAULT_AVATAR
    is_online: bool = True
    last_seen: Optional[str] = None
    created_at: Optional[str] = None
    socket_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        return cls(
            id=str(data['id']),
            username=data['username'],
            avatar=data.get('avatar') or DEFAULT_AVATAR,
            is_online=bool(data.get('isOnline', True)),
            last_seen=data.get('lastSeen'),
            created_at=data.get('createdAt'),
            socket_id=data.get('socketId'),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "username": self.username,
            "avatar": self.avatar,
            "isOnline": self.is_online,
            "lastSeen": self.last_seen,
        }
        if self.created_at is not None:
            data["createdAt"] = self.created_at
        if self.socket_id is not None:
            data["socketId"] = self.socket_id
        return data


@dataclass(frozen=True)
class FileInfo:
    """Outbound file attachment structure."""
    filename: str
    originalname: str
    size: int
    mimetype: str
    url: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "originalname": self.originalname,
            "size": self.size,
            "mimetype": self.mimetype,
            "url": self.url,
        }


@dataclass(frozen=True)
class Message:
    """Chat message structure.

    The embedded user is a snapshot taken by the server when the message was
    stored, not a live reference into the roster.
    """
    id: str
    content: str
    user: User
    created_at: str
    type: str = MessageKinds.TEXT
    user_id: Optional[str] = None
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    file_mime_type: Optional[str] = None

    @property
    def has_file(self) -> bool:
        return self.file_url is not None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Message':
        user = User.from_dict(data['user'])
        kind = data.get('type', MessageKinds.TEXT)
        if kind not in MessageKinds.ALL:
            raise ValueError(f"Unknown message type: {kind!r}")
        file_size = data.get('fileSize')
        return cls(
            id=str(data['id']),
            content=data.get('content', ''),
            user=user,
            created_at=data.get('createdAt', ''),
            type=kind,
            user_id=str(data.get('userId', user.id)),
            file_url=data.get('fileUrl'),
            file_name=data.get('fileName'),
            file_size=int(file_size) if file_size is not None else None,
            file_mime_type=data.get('fileMimeType'),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "content": self.content,
            "type": self.type,
            "userId": self.user_id or self.user.id,
            "user": self.user.to_dict(),
            "createdAt": self.created_at,
        }
        if self.has_file:
            data.update({
                "fileUrl": self.file_url,
                "fileName": self.file_name,
                "fileSize": self.file_size,
                "fileMimeType": self.file_mime_type,
            })
        return data


@dataclass(frozen=True)
class LocalIdentity:
    """Identity chosen on the login screen, before the server assigns an id."""
    username: str
    avatar: str

    def to_dict(self) -> Dict[str, Any]:
        return {"username": self.username, "avatar": self.avatar}


def _parse_each(data: List[Dict[str, Any]], parse, what: str) -> list:
    """Parse every entry, dropping the ones that fail."""
    parsed = []
    for item in data:
        try:
            parsed.append(parse(item))
        except (KeyError, TypeError, ValueError) as e:
            logger.log_error(f"parsing {what} entry", e)
    return parsed


def parse_users(data: List[Dict[str, Any]]) -> List[User]:
    """Parse a roster payload. Malformed entries are logged and skipped."""
    return _parse_each(data, User.from_dict, "user")


def parse_messages(data: List[Dict[str, Any]]) -> List[Message]:
    """Parse a message history payload. Malformed entries are logged and skipped."""
    return _parse_each(data, Message.from_dict, "message")


def generate_message_id(username: str, now: Optional[datetime] = None) -> str:
    """Build a client-side message id from the username and epoch milliseconds."""
    now = now or datetime.now(timezone.utc)
    return f"{username}-{int(now.timestamp() * 1000)}"


def create_join_message(identity: LocalIdentity) -> Dict[str, Any]:
    """Create a join message."""
    return identity.to_dict()


def create_send_message(text: str, identity: LocalIdentity, now: Optional[datetime] = None,
                        file: Optional[FileInfo] = None) -> Dict[str, Any]:
    """Create a chat message envelope."""
    now = now or datetime.now(timezone.utc)
    message = {
        "text": text,
        "user": identity.to_dict(),
        "timestamp": now.isoformat(),
        "id": generate_message_id(identity.username, now)
    }
    if file is not None:
        message["file"] = file.to_dict()
    return message


def create_typing_message(identity: LocalIdentity, is_typing: bool) -> Dict[str, Any]:
    """Create a typing notification message."""
    return {
        "user": identity.to_dict(),
        "isTyping": is_typing
    }


def encode_frame(event: str, data: Any = None) -> bytes:
    """Encode one event as a newline-terminated JSON frame."""
    return json.dumps({"event": event, "data": data}).encode('utf-8') + b'\n'


def decode_frame(line: bytes) -> Tuple[str, Any]:
    """Decode one newline-terminated JSON frame into (event, data)."""
    frame = json.loads(line.decode('utf-8').strip())
    if not isinstance(frame, dict) or not isinstance(frame.get('event'), str):
        raise ValueError("Frame must be an object with a string 'event'")
    return frame['event'], frame.get('data')
