"""
Group Chat Client GUI

PyQt6 front end for the session controller:
- Connection screen with retry
- Login screen with username and avatar selection
- Message feed, online users list and typing indicator
- Status bar notices

The asyncio event loop and the session controller live in a NetworkThread.
Snapshots and notices cross into the GUI thread through Qt signals; user
actions go back with loop.call_soon_threadsafe.
"""

import asyncio
import html
import sys
import threading
from typing import Optional, Sequence

from PyQt6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QGridLayout, QLabel,
    QPushButton, QLineEdit, QTextBrowser, QListWidget, QStackedWidget, QSplitter,
    QFileDialog, QButtonGroup
)
from PyQt6.QtCore import Qt, QThread, pyqtSignal

from groupchat.common.constants import AVATARS, DEFAULT_AVATAR, MAX_USERNAME_LENGTH
from groupchat.common.protocol_definitions import Message, User
from groupchat.connection.state_machine import ConnectionStatus
from groupchat.files.file_client import format_file_size
from groupchat.session.controller import SessionController, SessionSnapshot
from groupchat.session.notices import CallbackNotifier, Notifier
from groupchat.utils.config import ClientConfig
from groupchat.utils.logger import logger


def typing_text(users: Sequence[User]) -> str:
    """Describe who is typing, e.g. 'Ana and Luis are typing...'."""
    if not users:
        return ''
    if len(users) == 1:
        return f"{users[0].username} is typing..."
    if len(users) == 2:
        return f"{users[0].username} and {users[1].username} are typing..."
    return f"{len(users)} people are typing..."


def render_message_html(message: Message, own: bool) -> str:
    """Render one message as a feed entry."""
    time_text = html.escape(message.created_at[11:16])
    name = "You" if own else html.escape(message.user.username)
    color = "#2563EB" if own else "#059669"
    body = html.escape(message.content)
    if message.has_file:
        size = format_file_size(message.file_size or 0)
        body += (f'<br><span style="color: #6B7280;">📎 {html.escape(message.file_name or "file")}'
                 f' ({size})</span>')
    align = "right" if own else "left"
    return (f'<p align="{align}"><span style="color: #9CA3AF;">[{time_text}]</span> '
            f'{html.escape(message.user.avatar)} <b style="color: {color};">{name}:</b> {body}</p>')


# ============================================================================
# SCREENS
# ============================================================================

class ConnectionScreen(QWidget):
    """Shown while connecting, or when the connection failed before login."""

    retry_requested = pyqtSignal()

    def __init__(self):
        super().__init__()
        self.setup_ui()

    def setup_ui(self):
        layout = QVBoxLayout()
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)

        self.title_label = QLabel()
        self.title_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.title_label.setStyleSheet("font-size: 16pt; font-weight: bold;")
        layout.addWidget(self.title_label)

        self.detail_label = QLabel()
        self.detail_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.detail_label)

        self.error_label = QLabel()
        self.error_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.error_label.setWordWrap(True)
        self.error_label.setStyleSheet("color: #EF4444;")
        layout.addWidget(self.error_label)

        self.retry_button = QPushButton("Retry connection")
        self.retry_button.clicked.connect(self.retry_requested.emit)
        layout.addWidget(self.retry_button)

        self.setLayout(layout)
        self.set_state(ConnectionStatus.CONNECTING, '')

    def set_state(self, status: ConnectionStatus, error: str):
        if status == ConnectionStatus.DISCONNECTED:
            self.title_label.setText("⚠️ No connection")
            self.detail_label.setText("Could not connect to the chat server")
        else:
            self.title_label.setText("Connecting to the chat...")
            self.detail_label.setText("Please wait a moment")
        self.retry_button.setVisible(status == ConnectionStatus.DISCONNECTED)
        self.error_label.setText(error)
        self.error_label.setVisible(bool(error))


class LoginScreen(QWidget):
    """Username and avatar selection."""

    join_requested = pyqtSignal(str, str)  # username, avatar

    def __init__(self, avatars: Sequence[str] = AVATARS):
        super().__init__()
        self.avatars = tuple(avatars)
        self.selected_avatar = DEFAULT_AVATAR if DEFAULT_AVATAR in self.avatars else self.avatars[0]
        self.is_connected = False
        self.setup_ui()

    def setup_ui(self):
        layout = QVBoxLayout()
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)

        title = QLabel("💬 Group Chat")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        title.setStyleSheet("font-size: 18pt; font-weight: bold;")
        layout.addWidget(title)

        self.status_label = QLabel()
        self.status_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.status_label)

        layout.addWidget(QLabel("Username"))
        self.username_input = QLineEdit()
        self.username_input.setMaxLength(MAX_USERNAME_LENGTH)
        self.username_input.setPlaceholderText("Enter your name")
        self.username_input.textChanged.connect(self._update_join_button)
        self.username_input.returnPressed.connect(self.submit)
        layout.addWidget(self.username_input)

        layout.addWidget(QLabel("Choose your avatar"))
        avatar_grid = QGridLayout()
        self.avatar_group = QButtonGroup(self)
        self.avatar_group.setExclusive(True)
        for index, avatar in enumerate(self.avatars):
            button = QPushButton(avatar)
            button.setCheckable(True)
            button.setChecked(avatar == self.selected_avatar)
            button.clicked.connect(lambda _checked, a=avatar: self.select_avatar(a))
            self.avatar_group.addButton(button, index)
            avatar_grid.addWidget(button, index // 6, index % 6)
        layout.addLayout(avatar_grid)

        self.join_button = QPushButton("Join chat")
        self.join_button.clicked.connect(self.submit)
        layout.addWidget(self.join_button)

        self.setLayout(layout)
        self.set_connected(False)

    def select_avatar(self, avatar: str):
        self.selected_avatar = avatar
        button = self.avatar_group.button(self.avatars.index(avatar))
        if button is not None:
            button.setChecked(True)

    def set_connected(self, connected: bool):
        self.is_connected = connected
        self.status_label.setText("🟢 Connected" if connected else "🟠 Connecting...")
        self.username_input.setEnabled(connected)
        for button in self.avatar_group.buttons():
            button.setEnabled(connected)
        self._update_join_button()

    def submit(self):
        username = self.username_input.text().strip()
        if username and self.is_connected:
            self.join_requested.emit(username, self.selected_avatar)

    def _update_join_button(self):
        self.join_button.setEnabled(self.is_connected and bool(self.username_input.text().strip()))


# ============================================================================
# CHAT WIDGETS
# ============================================================================

class UsersList(QWidget):
    """Online users panel."""

    def __init__(self):
        super().__init__()
        layout = QVBoxLayout()
        layout.setContentsMargins(5, 5, 5, 5)
        self.header_label = QLabel()
        self.header_label.setStyleSheet("font-weight: bold;")
        layout.addWidget(self.header_label)
        self.user_list = QListWidget()
        layout.addWidget(self.user_list)
        self.setLayout(layout)
        self.set_users((), None)

    def set_users(self, users: Sequence[User], current_username: Optional[str]):
        self.header_label.setText(f"Online users ({len(users)} connected)")
        self.user_list.clear()
        if not users:
            self.user_list.addItem("No users online")
            return
        for index, user in enumerate(users):
            text = f"{user.avatar} {user.username}"
            if index == 0:
                text += " 👑"
            if user.username == current_username:
                text += " (you)"
            self.user_list.addItem(text)


class TypingIndicator(QLabel):
    """Shows who is typing, hidden when nobody is."""

    def __init__(self):
        super().__init__()
        self.setStyleSheet("color: #6B7280; font-style: italic;")
        self.set_users(())

    def set_users(self, users: Sequence[User]):
        if not users:
            self.setText('')
            self.setVisible(False)
            return
        avatars = ''.join(user.avatar for user in users[:3])
        self.setText(f"{avatars} {typing_text(users)}")
        self.setVisible(True)


class ChatWidget(QWidget):
    """Message feed with input."""

    message_sent = pyqtSignal(str)  # message text
    file_upload = pyqtSignal(str)  # file path
    typing = pyqtSignal()

    def __init__(self):
        super().__init__()
        self.setup_ui()

    def setup_ui(self):
        layout = QVBoxLayout()
        layout.setSpacing(5)
        layout.setContentsMargins(5, 5, 5, 5)

        self.chat_text = QTextBrowser()
        self.chat_text.setReadOnly(True)
        layout.addWidget(self.chat_text)

        self.typing_indicator = TypingIndicator()
        layout.addWidget(self.typing_indicator)

        input_layout = QHBoxLayout()
        self.input_field = QLineEdit()
        self.input_field.setPlaceholderText("Type your message...")
        self.input_field.textEdited.connect(lambda _text: self.typing.emit())
        self.input_field.returnPressed.connect(self.send_message)
        input_layout.addWidget(self.input_field)

        self.attach_button = QPushButton("📎")
        self.attach_button.clicked.connect(self.upload_file)
        input_layout.addWidget(self.attach_button)

        self.send_button = QPushButton("Send")
        self.send_button.clicked.connect(self.send_message)
        input_layout.addWidget(self.send_button)

        layout.addLayout(input_layout)
        self.setLayout(layout)

    def send_message(self):
        """Send chat message."""
        text = self.input_field.text().strip()
        if text:
            self.message_sent.emit(text)
            self.input_field.clear()

    def upload_file(self):
        """Pick a file to send."""
        file_path, _ = QFileDialog.getOpenFileName(
            self, "Select file to send", "", "Images and documents (*.jpg *.jpeg *.png *.gif *.pdf *.txt)"
        )
        if file_path:
            self.file_upload.emit(file_path)

    def set_messages(self, snapshot: SessionSnapshot):
        """Re-render the feed from a snapshot."""
        entries = [render_message_html(message, snapshot.is_own(message)) for message in snapshot.messages]
        self.chat_text.setHtml(''.join(entries))
        scrollbar = self.chat_text.verticalScrollBar()
        scrollbar.setValue(scrollbar.maximum())

    def set_connected(self, connected: bool):
        self.input_field.setEnabled(connected)
        self.attach_button.setEnabled(connected)
        self.send_button.setEnabled(connected)


# ============================================================================
# NETWORK THREAD
# ============================================================================

class NetworkThread(QThread):
    """Runs the asyncio loop and the session controller."""

    snapshot_changed = pyqtSignal(object)  # SessionSnapshot
    notice_received = pyqtSignal(str, str)  # level, text

    def __init__(self, config: ClientConfig):
        super().__init__()
        self.config = config
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.controller: Optional[SessionController] = None
        self.loop_ready = threading.Event()

    def run(self):
        """Run the event loop until stop()."""
        self.loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.loop)
        self.controller = SessionController(self.config, notifier=CallbackNotifier(self.notice_received.emit))
        self.controller.add_listener(self.snapshot_changed.emit)
        self.loop.call_soon(self.controller.start)
        self.loop_ready.set()

        try:
            self.loop.run_forever()
        finally:
            self.controller.close()
            pending = asyncio.all_tasks(self.loop)
            for task in pending:
                task.cancel()
            if pending:
                self.loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            self.loop.close()

    def invoke(self, method: str, *args):
        """Call a controller method on the loop thread."""
        if not self.loop_ready.wait(timeout=5.0):
            logger.warning(f"[NETWORK] Event loop not ready, dropping '{method}'")
            return
        self.loop.call_soon_threadsafe(lambda: getattr(self.controller, method)(*args))

    def stop(self):
        if self.loop is not None:
            self.loop.call_soon_threadsafe(self.loop.stop)


# ============================================================================
# MAIN WINDOW
# ============================================================================

class ClientMainWindow(QMainWindow):
    """Main application window."""

    def __init__(self, config: ClientConfig, network_thread: Optional[NetworkThread] = None):
        super().__init__()
        self.config = config
        self.snapshot: Optional[SessionSnapshot] = None
        self._attach_requested = False
        self.network_thread = network_thread or NetworkThread(config)

        self.setup_ui()
        self.setup_connections()

    def setup_ui(self):
        self.setWindowTitle("Group Chat")
        self.setGeometry(100, 100, 1000, 700)

        self.stack = QStackedWidget()
        self.connection_screen = ConnectionScreen()
        self.login_screen = LoginScreen(self.config.avatars)

        self.chat_page = QWidget()
        page_layout = QVBoxLayout()
        header = QHBoxLayout()
        self.title_label = QLabel("💬 Group Chat")
        self.title_label.setStyleSheet("font-size: 14pt; font-weight: bold;")
        header.addWidget(self.title_label)
        self.status_label = QLabel()
        header.addWidget(self.status_label)
        header.addStretch()
        self.leave_button = QPushButton("Leave")
        header.addWidget(self.leave_button)
        page_layout.addLayout(header)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        self.users_list = UsersList()
        self.chat_widget = ChatWidget()
        splitter.addWidget(self.users_list)
        splitter.addWidget(self.chat_widget)
        splitter.setStretchFactor(1, 3)
        page_layout.addWidget(splitter)
        self.chat_page.setLayout(page_layout)

        self.stack.addWidget(self.connection_screen)
        self.stack.addWidget(self.login_screen)
        self.stack.addWidget(self.chat_page)
        self.setCentralWidget(self.stack)

    def setup_connections(self):
        """Setup signal-slot connections."""
        self.network_thread.snapshot_changed.connect(self.on_snapshot)
        self.network_thread.notice_received.connect(self.on_notice)
        self.connection_screen.retry_requested.connect(lambda: self.network_thread.invoke('retry'))
        self.login_screen.join_requested.connect(self.on_join)
        self.chat_widget.message_sent.connect(lambda text: self.network_thread.invoke('send_message', text))
        self.chat_widget.file_upload.connect(lambda path: self.network_thread.invoke('send_file', path))
        self.chat_widget.typing.connect(lambda: self.network_thread.invoke('keystroke'))
        self.leave_button.clicked.connect(lambda: self.network_thread.invoke('leave'))

    def start(self):
        self.network_thread.start()

    def on_join(self, username: str, avatar: str):
        self.network_thread.invoke('join', username, avatar)

    def on_snapshot(self, snapshot: SessionSnapshot):
        """Switch screens and refresh widgets for a new snapshot."""
        self.snapshot = snapshot
        connected = snapshot.status == ConnectionStatus.CONNECTED

        if snapshot.logged_in:
            self.stack.setCurrentWidget(self.chat_page)
            self.users_list.set_users(snapshot.online_users, snapshot.identity.username)
            self.chat_widget.set_messages(snapshot)
            self.chat_widget.typing_indicator.set_users(snapshot.typing_users)
            self.chat_widget.set_connected(connected)
            self.status_label.setText("🟢 Connected" if connected else "🔴 Disconnected")
            self.setWindowTitle(f"Group Chat - {snapshot.identity.username}")
            # The chat page is wired; now the join can go out
            if not snapshot.attached and not self._attach_requested:
                self._attach_requested = True
                self.network_thread.invoke('attach')
            return

        self._attach_requested = False
        self.setWindowTitle("Group Chat")
        if connected:
            self.login_screen.set_connected(True)
            self.stack.setCurrentWidget(self.login_screen)
        else:
            self.login_screen.set_connected(False)
            self.connection_screen.set_state(snapshot.status, snapshot.error)
            self.stack.setCurrentWidget(self.connection_screen)

    def on_notice(self, level: str, text: str):
        """Show a transient notice in the status bar."""
        icon = {Notifier.SUCCESS: "✓", Notifier.ERROR: "✗"}.get(level, "👋")
        color = "#EF4444" if level == Notifier.ERROR else "#10B981"
        self.statusBar().setStyleSheet(f"color: {color};")
        self.statusBar().showMessage(f"{icon} {text}", 4000)

    def closeEvent(self, event):
        """Stop the network thread before closing."""
        if self.network_thread.isRunning():
            self.network_thread.stop()
            self.network_thread.wait(2000)
        super().closeEvent(event)


def run_gui(config: ClientConfig) -> int:
    """Run the GUI client."""
    app = QApplication(sys.argv)
    app.setApplicationName("Group Chat")

    window = ClientMainWindow(config)
    window.show()
    window.start()

    return app.exec()
