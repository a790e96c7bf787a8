#!/usr/bin/env python3
"""
Unit tests for the PyQt6 front end in client_gui.py

Covers:
- Typing indicator wording
- Login screen enablement
- Online users rendering
- Screen switching and the one-shot attach from the main window
"""

import os
import unittest
from unittest.mock import Mock, patch

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')

from PyQt6.QtWidgets import QApplication
from groupchat.common.protocol_definitions import LocalIdentity, Message, User
from groupchat.connection.state_machine import ConnectionStatus, TIMEOUT_REASON
from groupchat.session.controller import SessionSnapshot
from groupchat.ui.client_gui import (
    ClientMainWindow, LoginScreen, TypingIndicator, UsersList, render_message_html, typing_text
)
from groupchat.utils.config import ClientConfig


ANA = User('u1', 'Ana', '🚀')
LUIS = User('u2', 'Luis', '🎨')
EVA = User('u3', 'Eva', '🌟')


def make_snapshot(status=ConnectionStatus.CONNECTED, error='', identity=None, local_user=None,
                  online=(), typing=(), messages=(), attached=False):
    return SessionSnapshot(
        status=status,
        error=error,
        identity=identity,
        local_user=local_user,
        online_users=tuple(online),
        typing_users=tuple(typing),
        messages=tuple(messages),
        attached=attached
    )


class QtTestCase(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        """Create QApplication once for all tests."""
        if not QApplication.instance():
            cls.app = QApplication([])
        else:
            cls.app = QApplication.instance()


class TestTypingText(unittest.TestCase):
    """Test cases for typing_text."""

    def test_wording(self):
        self.assertEqual(typing_text(()), '')
        self.assertEqual(typing_text((ANA,)), "Ana is typing...")
        self.assertEqual(typing_text((ANA, LUIS)), "Ana and Luis are typing...")
        self.assertEqual(typing_text((ANA, LUIS, EVA)), "3 people are typing...")


class TestRenderMessage(unittest.TestCase):
    """Test cases for render_message_html."""

    def test_content_is_escaped(self):
        message = Message('m1', '<script>alert(1)</script>', LUIS, '2024-05-01T10:42:00.000Z')
        rendered = render_message_html(message, own=False)
        self.assertIn('&lt;script&gt;', rendered)
        self.assertIn('[10:42]', rendered)
        self.assertIn('Luis', rendered)

    def test_own_message(self):
        message = Message('m1', 'hola', ANA, '2024-05-01T10:42:00.000Z')
        self.assertIn('You:', render_message_html(message, own=True))

    def test_file_message(self):
        message = Message('m1', 'Shared file: a.pdf', ANA, '2024-05-01T10:42:00.000Z', type='file',
                          file_url='/uploads/a.pdf', file_name='a.pdf', file_size=2048)
        self.assertIn('a.pdf (2 KB)', render_message_html(message, own=False))


class TestLoginScreen(QtTestCase):
    """Test cases for LoginScreen."""

    def setUp(self):
        self.screen = LoginScreen()

    def test_join_disabled_until_connected_and_named(self):
        """Join needs both a connection and a username."""
        self.assertFalse(self.screen.join_button.isEnabled())

        self.screen.set_connected(True)
        self.assertFalse(self.screen.join_button.isEnabled())

        self.screen.username_input.setText('Ana')
        self.assertTrue(self.screen.join_button.isEnabled())

        self.screen.set_connected(False)
        self.assertFalse(self.screen.join_button.isEnabled())

    def test_submit_emits_selection(self):
        """Submitting emits the trimmed username and chosen avatar."""
        self.screen.set_connected(True)
        self.screen.username_input.setText('  Ana ')
        self.screen.select_avatar('🚀')

        with patch.object(self.screen, 'join_requested') as mock_signal:
            self.screen.submit()
            mock_signal.emit.assert_called_once_with('Ana', '🚀')

    def test_submit_ignored_while_disconnected(self):
        self.screen.username_input.setText('Ana')
        with patch.object(self.screen, 'join_requested') as mock_signal:
            self.screen.submit()
            mock_signal.emit.assert_not_called()


class TestUsersList(QtTestCase):
    """Test cases for UsersList and TypingIndicator."""

    def test_empty_roster(self):
        users = UsersList()
        self.assertEqual(users.user_list.item(0).text(), "No users online")

    def test_roster_marks_first_and_self(self):
        users = UsersList()
        users.set_users((LUIS, ANA), 'Ana')
        self.assertEqual(users.user_list.count(), 2)
        self.assertEqual(users.user_list.item(0).text(), "🎨 Luis 👑")
        self.assertEqual(users.user_list.item(1).text(), "🚀 Ana (you)")
        self.assertIn("2 connected", users.header_label.text())

    def test_typing_indicator(self):
        indicator = TypingIndicator()
        self.assertTrue(indicator.isHidden())
        indicator.set_users((LUIS,))
        self.assertFalse(indicator.isHidden())
        self.assertIn("Luis is typing...", indicator.text())


class TestClientMainWindow(QtTestCase):
    """Test cases for screen switching in ClientMainWindow."""

    def setUp(self):
        self.network_thread = Mock()
        self.window = ClientMainWindow(ClientConfig(), network_thread=self.network_thread)

    def test_connecting_shows_connection_screen(self):
        self.window.on_snapshot(make_snapshot(status=ConnectionStatus.CONNECTING))
        self.assertIs(self.window.stack.currentWidget(), self.window.connection_screen)
        self.assertTrue(self.window.connection_screen.retry_button.isHidden())

    def test_failure_shows_reason(self):
        self.window.on_snapshot(make_snapshot(status=ConnectionStatus.DISCONNECTED, error=TIMEOUT_REASON))
        screen = self.window.connection_screen
        self.assertIs(self.window.stack.currentWidget(), screen)
        self.assertEqual(screen.error_label.text(), TIMEOUT_REASON)
        self.assertEqual(screen.retry_button.text(), "Retry connection")

        screen.retry_button.click()
        self.network_thread.invoke.assert_called_once_with('retry')

    def test_connected_shows_login(self):
        self.window.on_snapshot(make_snapshot())
        self.assertIs(self.window.stack.currentWidget(), self.window.login_screen)
        self.assertTrue(self.window.login_screen.is_connected)

    def test_join_is_forwarded(self):
        self.window.on_snapshot(make_snapshot())
        self.window.login_screen.username_input.setText('Ana')
        self.window.login_screen.join_button.click()
        self.network_thread.invoke.assert_called_once_with('join', 'Ana', '👤')

    def test_logged_in_attaches_once(self):
        """The chat page requests attach exactly once per session."""
        snapshot = make_snapshot(identity=LocalIdentity('Ana', '🚀'), online=(ANA,))
        self.window.on_snapshot(snapshot)
        self.window.on_snapshot(snapshot)

        self.assertIs(self.window.stack.currentWidget(), self.window.chat_page)
        self.network_thread.invoke.assert_called_once_with('attach')
        self.assertEqual(self.window.windowTitle(), "Group Chat - Ana")

    def test_attached_snapshot_does_not_attach(self):
        self.window.on_snapshot(make_snapshot(identity=LocalIdentity('Ana', '🚀'), attached=True))
        self.network_thread.invoke.assert_not_called()

    def test_chat_widgets_follow_snapshot(self):
        messages = (Message('m1', 'hola', LUIS, '2024-05-01T10:42:00.000Z'),)
        snapshot = make_snapshot(identity=LocalIdentity('Ana', '🚀'), local_user=ANA, online=(ANA, LUIS),
                                 typing=(LUIS,), messages=messages, attached=True)
        self.window.on_snapshot(snapshot)

        self.assertIn('hola', self.window.chat_widget.chat_text.toPlainText())
        self.assertFalse(self.window.chat_widget.typing_indicator.isHidden())
        self.assertEqual(self.window.users_list.user_list.count(), 2)

    def test_disconnect_disables_input(self):
        snapshot = make_snapshot(status=ConnectionStatus.DISCONNECTED, identity=LocalIdentity('Ana', '🚀'),
                                 attached=True)
        self.window.on_snapshot(snapshot)
        self.assertIs(self.window.stack.currentWidget(), self.window.chat_page)
        self.assertFalse(self.window.chat_widget.send_button.isEnabled())

    def test_leave_then_login_again(self):
        self.window.on_snapshot(make_snapshot(identity=LocalIdentity('Ana', '🚀')))
        self.window.on_snapshot(make_snapshot(status=ConnectionStatus.CONNECTING))
        self.window.on_snapshot(make_snapshot(identity=LocalIdentity('Luis', '🎨')))
        self.assertEqual(self.network_thread.invoke.call_count, 2)

    def test_chat_input_forwards_to_controller(self):
        self.window.chat_widget.input_field.setText('hola')
        self.window.chat_widget.send_message()
        self.network_thread.invoke.assert_called_once_with('send_message', 'hola')
        self.assertEqual(self.window.chat_widget.input_field.text(), '')

    def test_notice_in_status_bar(self):
        self.window.on_notice('info', 'Eva joined the chat')
        self.assertIn('Eva joined the chat', self.window.statusBar().currentMessage())


if __name__ == '__main__':
    unittest.main()
