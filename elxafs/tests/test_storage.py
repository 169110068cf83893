#!/usr/bin/env python3
"""
Storage tests: key-value stores, record store, content backends and
content tiering.

Run with: python -m pytest elxafs/tests -v
"""

import json
import shutil
import tempfile
import unittest


class TestKeyValueStores(unittest.TestCase):
    """Test the key-value store implementations."""

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_memory_store(self):
        from elxafs.storage.kv_store import MemoryKeyValueStore

        kv = MemoryKeyValueStore()
        self.assertIsNone(kv.get_item('folders'))
        kv.set_item('folders', '{}')
        self.assertEqual(kv.get_item('folders'), '{}')
        kv.remove_item('folders')
        kv.remove_item('missing')
        self.assertEqual(kv.keys(), [])

    def test_json_file_store(self):
        """Test one file per key and odd key names."""
        from elxafs.storage.kv_store import JsonFileKeyValueStore

        kv = JsonFileKeyValueStore(self.tmpdir)
        kv.set_item('elxaos/files', '{"a": 1}')

        reopened = JsonFileKeyValueStore(self.tmpdir)
        self.assertEqual(reopened.get_item('elxaos/files'), '{"a": 1}')
        self.assertEqual(reopened.keys(), ['elxaos/files'])

        reopened.clear()
        self.assertIsNone(reopened.get_item('elxaos/files'))


class TestRecordStore(unittest.TestCase):
    """Test the key-value record store."""

    def test_empty_store(self):
        from elxafs.storage.record_store import create_record_store

        store = create_record_store('memory')

        self.assertIsNone(store.load_system())
        self.assertEqual(store.load_folders(), {})
        self.assertEqual(store.load_files(), {})

    def test_persisted_layout(self):
        """Test key names and the JSON mapping layout."""
        from elxafs.filesystem.records import FolderRecord
        from elxafs.storage.kv_store import MemoryKeyValueStore
        from elxafs.storage.record_store import KeyValueRecordStore

        kv = MemoryKeyValueStore()
        store = KeyValueRecordStore(kv, key_prefix='elxaos_')
        store.save_folders({'/Root': FolderRecord(name='Root', path='/', type='system')})
        store.save_system({'version': '2.0.0'})

        self.assertEqual(sorted(kv.keys()), ['elxaos_folders', 'elxaos_system'])
        data = json.loads(kv.get_item('elxaos_folders'))
        self.assertEqual(data['/Root']['type'], 'system')
        self.assertEqual(store.load_folders()['/Root'].name, 'Root')

    def test_corrupt_value(self):
        from elxafs.exceptions import CorruptStoreError
        from elxafs.storage.kv_store import MemoryKeyValueStore
        from elxafs.storage.record_store import KeyValueRecordStore

        store = KeyValueRecordStore(MemoryKeyValueStore({'files': '{not json'}))
        with self.assertRaises(CorruptStoreError):
            store.load_files()

        store = KeyValueRecordStore(MemoryKeyValueStore({'files': json.dumps({'/a': {'name': 'a', 'type': 'nope'}})}))
        with self.assertRaises(CorruptStoreError):
            store.load_files()

    def test_unknown_backend(self):
        from elxafs.storage.record_store import create_record_store

        with self.assertRaises(ValueError):
            create_record_store('sqlite')


class TestDirectoryContentBackend(unittest.TestCase):
    """Test the directory content backend."""

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_unavailable_until_granted(self):
        from elxafs.exceptions import BackendUnavailableError
        from elxafs.storage.content_backend import DirectoryContentBackend

        backend = DirectoryContentBackend()
        self.assertFalse(backend.is_available())
        with self.assertRaises(BackendUnavailableError):
            backend.save_content('/Root/a.txt', 'x')

        self.assertTrue(backend.grant(self.tmpdir))
        self.assertTrue(backend.is_available())
        backend.revoke()
        self.assertFalse(backend.is_available())

    def test_mirrors_logical_tree(self):
        """Test nested directories and content formats."""
        import os
        from elxafs.storage.content_backend import DirectoryContentBackend

        backend = DirectoryContentBackend(self.tmpdir)
        backend.save_content('/Root/Users/kit/Pictures/cat.png', b'\x89PNG')
        backend.save_content('/Root/Users/kit/Documents/note', 'hi')
        backend.save_content('/Root/Users/kit/Documents/deck.odp', {'slides': []})

        self.assertTrue(os.path.isfile(os.path.join(self.tmpdir, 'Root', 'Users', 'kit', 'Pictures', 'cat.png')))
        self.assertEqual(backend.load_content('/Root/Users/kit/Pictures/cat.png'), b'\x89PNG')
        self.assertEqual(backend.load_content('/Root/Users/kit/Documents/note', 'text'), 'hi')
        self.assertEqual(backend.load_content('/Root/Users/kit/Documents/deck.odp'), {'slides': []})
        self.assertIsNone(backend.load_content('/Root/missing.txt'))

    def test_delete_prunes_empty_directories(self):
        import os
        from elxafs.storage.content_backend import DirectoryContentBackend

        backend = DirectoryContentBackend(self.tmpdir)
        backend.save_content('/Root/a/b/c.txt', 'x')

        self.assertTrue(backend.delete_content('/Root/a/b/c.txt'))
        self.assertFalse(backend.delete_content('/Root/a/b/c.txt'))
        self.assertFalse(os.path.exists(os.path.join(self.tmpdir, 'Root')))

    def test_dot_segments_rejected(self):
        from elxafs.exceptions import InvalidNameError
        from elxafs.storage.content_backend import DirectoryContentBackend

        backend = DirectoryContentBackend(self.tmpdir)
        with self.assertRaises(InvalidNameError):
            backend.save_content('/Root/../escape.txt', 'x')


class TestContentTier(unittest.TestCase):
    """Test tier policy and backend fallback."""

    def test_policy(self):
        from elxafs.filesystem.records import FileKind
        from elxafs.filesystem.tiering import ContentTier
        from elxafs.tests.fixtures import MemoryContentBackend

        tier = ContentTier(MemoryContentBackend(), threshold=10)
        docs = '/Root/Users/kit/Documents/a'

        self.assertTrue(tier.should_externalize(FileKind.IMAGE, b'x', docs))
        self.assertFalse(tier.should_externalize(FileKind.TEXT, 'short', docs))
        self.assertTrue(tier.should_externalize(FileKind.TEXT, 'x' * 10, docs))
        self.assertFalse(tier.should_externalize(FileKind.SETTINGS, 'x' * 100, docs))
        self.assertFalse(tier.should_externalize(FileKind.IMAGE, b'x', '/Root/System/logo.png'))

    def test_unavailable_backend_keeps_primary(self):
        from elxafs.filesystem.records import FileKind
        from elxafs.filesystem.tiering import ContentTier
        from elxafs.tests.fixtures import MemoryContentBackend

        tier = ContentTier(MemoryContentBackend(available=False))
        self.assertFalse(tier.should_externalize(FileKind.IMAGE, b'x', '/a.png'))
        self.assertFalse(ContentTier(None).available())

    def test_failures_are_misses(self):
        """Test that backend exceptions become misses."""
        from elxafs.filesystem.tiering import ContentTier
        from elxafs.tests.fixtures import MemoryContentBackend

        backend = MemoryContentBackend()
        backend.fail = True
        tier = ContentTier(backend)

        self.assertFalse(tier.save('/a.png', b'x'))
        self.assertIsNone(tier.load('/a.png'))
        self.assertFalse(tier.delete('/a.png'))
        tier.shutdown()

    def test_timeout_is_a_miss(self):
        """Test that a hanging backend call is abandoned after the timeout."""
        import time
        from elxafs.filesystem.tiering import ContentTier
        from elxafs.tests.fixtures import MemoryContentBackend

        backend = MemoryContentBackend()
        backend.delay = 1.0
        tier = ContentTier(backend, timeout=0.1)

        started = time.time()
        self.assertFalse(tier.save('/a.png', b'x'))
        self.assertLess(time.time() - started, 0.9)
        tier.shutdown()

    def test_timed_out_save_is_discarded(self):
        """Test a save that lands after its timeout leaves no blob behind."""
        import time
        from elxafs.filesystem.tiering import ContentTier
        from elxafs.tests.fixtures import MemoryContentBackend

        backend = MemoryContentBackend()
        backend.delay = 0.3
        tier = ContentTier(backend, timeout=0.05)

        self.assertFalse(tier.save('/a.png', b'x'))

        deadline = time.time() + 3.0
        while time.time() < deadline:
            if ('delete', '/a.png') in backend.calls and '/a.png' not in backend.blobs:
                break
            time.sleep(0.05)
        self.assertIn(('delete', '/a.png'), backend.calls)
        self.assertNotIn('/a.png', backend.blobs)
        self.assertEqual(backend.calls, [('save', '/a.png'), ('delete', '/a.png')])
        tier.shutdown()

    def test_relocate(self):
        from elxafs.filesystem.tiering import ContentTier
        from elxafs.tests.fixtures import MemoryContentBackend

        backend = MemoryContentBackend()
        backend.blobs['/old.png'] = b'x'
        tier = ContentTier(backend)

        self.assertTrue(tier.relocate('/old.png', '/new.png'))
        self.assertEqual(backend.blobs, {'/new.png': b'x'})
        self.assertFalse(tier.relocate('/missing.png', '/other.png'))
        tier.shutdown()


if __name__ == '__main__':
    unittest.main()
