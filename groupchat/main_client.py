"""
Group chat command-line client.

Joins the chat with a username and avatar, prints the feed as it changes and
sends every line typed on stdin as a message.
"""

import asyncio
import sys
from typing import Optional

from groupchat.common.constants import DEFAULT_AVATAR
from groupchat.connection.state_machine import ConnectionStatus
from groupchat.session.controller import SessionController, SessionSnapshot
from groupchat.utils.config import ClientConfig
from groupchat.utils.logger import logger


class ChatClientApp:
    """Interactive stdin front end for the session controller."""

    def __init__(self, config: ClientConfig, username: str, avatar: str = DEFAULT_AVATAR,
                 controller: Optional[SessionController] = None):
        self.config = config
        self.username = username
        self.avatar = avatar
        self.controller = controller or SessionController(config)
        self.controller.add_listener(self.on_snapshot)
        self.running = False
        self._status_changed = asyncio.Event()
        self._printed = 0
        self._last_typing = ()
        self._rejoin_pending = False

    def on_snapshot(self, snapshot: SessionSnapshot):
        """Print what changed since the previous snapshot."""
        self._status_changed.set()

        if len(snapshot.messages) < self._printed:
            # History was replaced by a join handshake
            self._printed = 0
        for message in snapshot.messages[self._printed:]:
            print(self.format_message(message, snapshot.is_own(message)))
        self._printed = len(snapshot.messages)

        typing = tuple(user.username for user in snapshot.typing_users)
        if typing != self._last_typing and typing:
            print(f"  ... {', '.join(typing)} typing")
        self._last_typing = typing

        # Session ended by grace expiry: join again once reconnected
        if (self.running and not snapshot.logged_in and snapshot.status == ConnectionStatus.CONNECTED
                and not self._rejoin_pending):
            self._rejoin_pending = True
            asyncio.get_running_loop().call_soon(self.rejoin)

    def rejoin(self):
        """Join again with the same username and avatar."""
        self._rejoin_pending = False
        if not self.running or self.controller.is_logged_in:
            return
        logger.info(f"[INFO] Session ended, joining again as '{self.username}'")
        if self.controller.join(self.username, self.avatar):
            self.controller.attach()

    @staticmethod
    def format_message(message, own: bool) -> str:
        prefix = "(you) " if own else ""
        line = f"[{message.created_at[11:16]}] {prefix}{message.user.avatar} {message.user.username}: {message.content}"
        if message.has_file:
            line += f" [{message.file_name}]"
        return line

    async def wait_for_connection(self) -> bool:
        """Wait until the connection settles as connected or disconnected."""
        while self.controller.status == ConnectionStatus.CONNECTING:
            self._status_changed.clear()
            await self._status_changed.wait()
        return self.controller.status == ConnectionStatus.CONNECTED

    def handle_command(self, line: str) -> bool:
        """Handle one input line. Returns False when the user wants to quit."""
        if line in ('/leave', '/quit'):
            return False
        if line == '/help':
            logger.show_interactive_mode_info()
        elif line == '/users':
            users = self.controller.presence.users
            if not users:
                print("No users online")
            for user in users:
                print(f"  {user.avatar} {user.username}")
        elif line.startswith('/upload '):
            self.controller.send_file(line[len('/upload '):].strip())
        else:
            self.controller.send_message(line)
        return True

    async def run(self):
        """Connect, join, and chat until EOF or /leave."""
        self.controller.start()
        if not await self.wait_for_connection():
            logger.error(f"[ERROR] {self.controller.connection.error}")
            self.controller.close()
            return

        if not self.controller.join(self.username, self.avatar):
            self.controller.close()
            return
        self.controller.attach()
        logger.show_interactive_mode_info()

        loop = asyncio.get_running_loop()
        self.running = True
        try:
            while self.running:
                line = await loop.run_in_executor(None, sys.stdin.readline)
                if not line:
                    break
                line = line.strip()
                if not line:
                    continue
                self.running = self.handle_command(line)
        except asyncio.CancelledError:
            pass
        finally:
            self.running = False
            self.controller.close()
            logger.info("[INFO] Disconnected from server")


async def main(config: ClientConfig, username: Optional[str] = None, avatar: str = DEFAULT_AVATAR):
    """Main entry point for CLI mode."""
    if not username:
        username = input("Enter username: ").strip() or "anonymous"

    app = ChatClientApp(config, username, avatar)
    try:
        await app.run()
    except KeyboardInterrupt:
        print("\n[INFO] Interrupted by user")
