#!/usr/bin/env python3
"""
Unit tests for the online users roster.
"""

import unittest
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from groupchat.chat.presence import PresenceSet, dedupe_by_key
from groupchat.common.protocol_definitions import User


class TestDedupeByKey(unittest.TestCase):
    """Test cases for the replace-wins-by-key merge."""

    def test_keeps_last_occurrence_in_last_position(self):
        items = [('a', 1), ('b', 2), ('a', 3)]
        self.assertEqual(dedupe_by_key(items, lambda item: item[0]), [('b', 2), ('a', 3)])

    def test_repeated_key_does_not_keep_first_slot(self):
        items = [('a', 1), ('b', 2), ('a', 3)]
        result = dedupe_by_key(items, lambda item: item[0])
        self.assertNotEqual(result, [('a', 3), ('b', 2)])
        self.assertEqual([item[0] for item in result], ['b', 'a'])

    def test_no_duplicates_keeps_order(self):
        items = [('c', 1), ('a', 2), ('b', 3)]
        self.assertEqual(dedupe_by_key(items, lambda item: item[0]), items)

    def test_empty(self):
        self.assertEqual(dedupe_by_key([], lambda item: item), [])

    def test_accepts_generators(self):
        result = dedupe_by_key((n % 3 for n in range(7)), lambda n: n)
        self.assertEqual(result, [1, 2, 0])


class TestPresenceSet(unittest.TestCase):
    """Test cases for PresenceSet.replace."""

    def setUp(self):
        self.presence = PresenceSet()

    def test_one_entry_per_distinct_id(self):
        users = [
            User('1', 'ana'), User('2', 'luis'), User('1', 'ana'),
            User('3', 'eva'), User('2', 'luis'), User('2', 'luis'),
        ]
        result = self.presence.replace(users)
        ids = [user.id for user in result]
        self.assertEqual(len(ids), len(set(ids)))
        self.assertEqual(set(ids), {'1', '2', '3'})

    def test_last_write_wins(self):
        self.presence.replace([User('1', 'ana', avatar='🚀'), User('1', 'ana', avatar='🎨')])
        self.assertEqual(len(self.presence), 1)
        self.assertEqual(self.presence.get('1').avatar, '🎨')

    def test_replace_discards_previous_roster(self):
        self.presence.replace([User('1', 'ana'), User('2', 'luis')])
        self.presence.replace([User('3', 'eva')])
        self.assertEqual([user.id for user in self.presence], ['3'])
        self.assertNotIn('1', self.presence)

    def test_empty_input_yields_empty_set(self):
        self.presence.replace([User('1', 'ana')])
        self.assertEqual(self.presence.replace([]), ())
        self.assertEqual(len(self.presence), 0)
        self.assertIsNone(self.presence.get('1'))

    def test_users_is_immutable_view(self):
        self.presence.replace([User('1', 'ana')])
        self.assertIsInstance(self.presence.users, tuple)

    def test_clear(self):
        self.presence.replace([User('1', 'ana')])
        self.presence.clear()
        self.assertEqual(self.presence.users, ())


if __name__ == '__main__':
    unittest.main()
