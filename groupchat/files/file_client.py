"""
File client module.

This module handles client-side attachment checks and encoding. Files travel
inline in the chat message as a base64 data URL.
"""

import base64
import mimetypes
from pathlib import Path
from typing import Optional

from groupchat.common.constants import MAX_FILE_SIZE, ALLOWED_MIME_TYPES
from groupchat.common.protocol_definitions import FileInfo


def format_file_size(size: int) -> str:
    """Format a byte count for display, e.g. 1536 -> '1.5 KB'."""
    if size == 0:
        return '0 Bytes'
    units = ['Bytes', 'KB', 'MB', 'GB']
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {units[index]}"


def guess_mime_type(filename: str) -> str:
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or 'application/octet-stream'


class FileClient:
    """Client-side attachment functionality."""

    def __init__(self, max_file_size: int = MAX_FILE_SIZE, allowed_mime_types=ALLOWED_MIME_TYPES):
        self.max_file_size = max_file_size
        self.allowed_mime_types = tuple(allowed_mime_types)

    @classmethod
    def for_config(cls, config) -> 'FileClient':
        settings = config.get_file_settings()
        return cls(settings['max_file_size'], settings['allowed_mime_types'])

    def check(self, size: int, mime_type: str) -> Optional[str]:
        """Return the reason a file may not be sent, or None when it is acceptable."""
        if size > self.max_file_size:
            limit = format_file_size(self.max_file_size)
            return f"File is too large. Maximum {limit}."
        if mime_type not in self.allowed_mime_types:
            return "File type not allowed."
        return None

    def check_file_info(self, info: FileInfo) -> Optional[str]:
        return self.check(info.size, info.mimetype)

    def check_path(self, file_path: str) -> Optional[str]:
        """Validate a file on disk without reading its contents."""
        path = Path(file_path)
        try:
            if not path.is_file():
                return f"Not a file: {path.name}"
            size = path.stat().st_size
        except OSError as e:
            return f"Cannot read file: {e}"
        return self.check(size, guess_mime_type(path.name))

    def encode(self, file_path: str) -> FileInfo:
        """Read a file and encode it as a data URL attachment.

        Callers validate with check_path first; read errors propagate as OSError.
        """
        path = Path(file_path)
        data = path.read_bytes()
        mime_type = guess_mime_type(path.name)
        url = f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
        return FileInfo(
            filename=path.name,
            originalname=path.name,
            size=len(data),
            mimetype=mime_type,
            url=url
        )
