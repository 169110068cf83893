#!/usr/bin/env python3
"""
Record and namespace tree tests.

Run with: python -m pytest elxafs/tests -v
"""

import unittest


class TestFileKinds(unittest.TestCase):
    """Test file kind validation."""

    def test_program_requires_program_id(self):
        """Test that program files need a program attribute."""
        from elxafs.filesystem.records import FileRecord
        from elxafs.exceptions import InvalidRecordError

        with self.assertRaises(InvalidRecordError):
            FileRecord(name='Paint.abbi', path='/Root/System', kind='program')

        record = FileRecord(name='Paint.abbi', path='/Root/System', kind='program',
                            attributes={'program': 'paint'})
        self.assertEqual(record.attributes['program'], 'paint')

    def test_unknown_attribute_rejected(self):
        from elxafs.filesystem.records import FileRecord
        from elxafs.exceptions import InvalidRecordError

        with self.assertRaises(InvalidRecordError):
            FileRecord(name='a.txt', path='/', kind='text', attributes={'program': 'paint'})

    def test_unknown_kind_rejected(self):
        from elxafs.filesystem.records import FileRecord
        from elxafs.exceptions import InvalidRecordError

        with self.assertRaises(InvalidRecordError):
            FileRecord(name='a.bin', path='/', kind='executable')

    def test_canonical_names(self):
        """Test extension canonicalization per kind."""
        from elxafs.filesystem.records import FileKind, canonical_name

        self.assertEqual(canonical_name('cat', FileKind.IMAGE), 'cat.png')
        self.assertEqual(canonical_name('cat.JPG', FileKind.IMAGE), 'cat.jpg')
        self.assertEqual(canonical_name('deck', FileKind.SLIDESHOW), 'deck.odp')
        self.assertEqual(canonical_name('note', FileKind.TEXT), 'note')

    def test_content_size(self):
        from elxafs.filesystem.records import content_size

        self.assertEqual(content_size(None), 0)
        self.assertEqual(content_size('hé'), 3)
        self.assertEqual(content_size(b'\x00\x01'), 2)
        self.assertEqual(content_size({'a': 1}), len('{"a": 1}'))


class TestRecordSerialization(unittest.TestCase):
    """Test the persisted record layout."""

    def test_folder_layout(self):
        from elxafs.filesystem.records import FolderRecord, FolderType

        record = FolderRecord(name='kit', path='/Root/Users', type=FolderType.USER_ROOT,
                              is_protected=True)
        data = record.to_dict()

        self.assertEqual(data['type'], 'user-root')
        self.assertTrue(data['isProtected'])
        self.assertNotIn('recycleBinMetadata', data)
        self.assertEqual(FolderRecord.from_dict(data), record)

    def test_external_file_has_no_inline_content(self):
        """Test that externally stored files persist metadata only."""
        from elxafs.filesystem.records import FileRecord

        record = FileRecord(name='cat.png', path='/Root', kind='image', content=None,
                            externally_stored=True, content_format='bytes', size=10)
        data = record.to_dict()

        self.assertTrue(data['externallyStored'])
        self.assertNotIn('content', data)
        self.assertEqual(data['contentFormat'], 'bytes')

    def test_bytes_content_is_base64(self):
        from elxafs.filesystem.records import FileRecord

        record = FileRecord(name='a.bin', path='/', kind='data', content=b'\xff\x00')
        data = record.to_dict()

        self.assertEqual(data['contentEncoding'], 'base64')
        self.assertEqual(FileRecord.from_dict(data).content, b'\xff\x00')

    def test_attribute_keys(self):
        """Test camelCase attribute names in the store."""
        from elxafs.filesystem.records import FileRecord

        record = FileRecord(name='p.png', path='/', kind='image', attributes={'mime_type': 'image/png'})
        data = record.to_dict()

        self.assertEqual(data['mimeType'], 'image/png')
        self.assertEqual(FileRecord.from_dict(data).attributes, {'mime_type': 'image/png'})


class TestNamespaceTree(unittest.TestCase):
    """Test the arena namespace tree."""

    def _tree(self):
        from elxafs.filesystem.namespace import NamespaceTree
        from elxafs.filesystem.records import FolderRecord, FileRecord

        folders = {
            '/a': FolderRecord(name='a', path='/'),
            '/a/b': FolderRecord(name='b', path='/a'),
            '/a/b/c': FolderRecord(name='c', path='/a/b'),
        }
        files = {
            '/a/b/note': FileRecord(name='note', path='/a/b', content='hi'),
            '/a/b/c/deep.txt': FileRecord(name='deep.txt', path='/a/b/c', content='deep'),
        }
        return NamespaceTree.from_mappings(folders, files)

    def test_lookup(self):
        tree = self._tree()

        self.assertIsNotNone(tree.lookup_folder('/a/b'))
        self.assertIsNone(tree.lookup_folder('/a/x'))
        index = tree.lookup_file('/a/b/note')
        self.assertEqual(tree.path_of(index), '/a/b/note')
        self.assertEqual(tree.record(index).content, 'hi')

    def test_relink_relabels_subtree(self):
        """Test that moving one node moves every descendant path."""
        tree = self._tree()

        tree.relink(tree.lookup_folder('/a/b'), '/', 'z')
        folders, files = tree.to_mappings()

        self.assertEqual(set(folders), {'/a', '/z', '/z/c'})
        self.assertEqual(set(files), {'/z/note', '/z/c/deep.txt'})
        self.assertEqual(files['/z/c/deep.txt'].path, '/z/c')
        self.assertEqual(folders['/z'].name, 'z')

    def test_remove_subtree(self):
        tree = self._tree()

        removed = tree.remove(tree.lookup_folder('/a/b'))
        folders, files = tree.to_mappings()

        self.assertEqual(removed, 4)
        self.assertEqual(set(folders), {'/a'})
        self.assertEqual(files, {})

    def test_records_without_parent_folder(self):
        """Test that orphaned records stay reachable."""
        from elxafs.filesystem.namespace import NamespaceTree
        from elxafs.filesystem.records import FileRecord

        tree = NamespaceTree.from_mappings({}, {'/x/y/f.txt': FileRecord(name='f.txt', path='/x/y')})

        self.assertIsNone(tree.lookup_folder('/x/y'))
        self.assertIsNotNone(tree.lookup_file('/x/y/f.txt'))
        folders, files = tree.to_mappings()
        self.assertEqual(folders, {})
        self.assertEqual(list(files), ['/x/y/f.txt'])

    def test_slots_reused(self):
        from elxafs.filesystem.records import FolderRecord

        tree = self._tree()
        tree.remove(tree.lookup_folder('/a/b/c'))
        before = len(tree._nodes)
        tree.insert_folder('/a', 'new', FolderRecord(name='new', path='/a'))

        self.assertEqual(len(tree._nodes), before)

    def test_merge_conflict(self):
        """Test merging an implicit folder reports clashing records."""
        from elxafs.filesystem.namespace import NamespaceTree
        from elxafs.filesystem.records import FolderRecord, FileRecord

        tree = NamespaceTree.from_mappings(
            {'/y': FolderRecord(name='y', path='/')},
            {
                '/x/f.txt': FileRecord(name='f.txt', path='/x'),
                '/y/f.txt': FileRecord(name='f.txt', path='/y'),
            }
        )

        self.assertEqual(tree.merge_conflict(tree.find_folder('/x'), tree.lookup_folder('/y')), '/x/f.txt')

    def test_relink_merges_implicit_folder(self):
        from elxafs.filesystem.namespace import NamespaceTree
        from elxafs.filesystem.records import FolderRecord, FileRecord

        tree = NamespaceTree.from_mappings(
            {
                '/x/sub/inner': FolderRecord(name='inner', path='/x/sub'),
                '/y': FolderRecord(name='y', path='/'),
                '/y/sub': FolderRecord(name='sub', path='/y'),
            },
            {
                '/x/g.txt': FileRecord(name='g.txt', path='/x'),
                '/y/f.txt': FileRecord(name='f.txt', path='/y'),
            }
        )
        source = tree.find_folder('/x')
        target = tree.lookup_folder('/y')
        self.assertIsNone(tree.merge_conflict(source, target))

        tree.relink(target, '/', 'x')
        folders, files = tree.to_mappings()

        self.assertEqual(set(folders), {'/x', '/x/sub', '/x/sub/inner'})
        self.assertEqual(set(files), {'/x/f.txt', '/x/g.txt'})
        self.assertEqual(len(tree), 5)

    def test_records_are_copies(self):
        from elxafs.filesystem.namespace import NamespaceTree
        from elxafs.filesystem.records import FileRecord

        tree = NamespaceTree.from_mappings({}, {'/d.json': FileRecord(name='d.json', path='/', content={'a': 1})})
        index = tree.lookup_file('/d.json')

        tree.record(index).content['a'] = 2
        tree.to_mappings()[1]['/d.json'].content['a'] = 3

        self.assertEqual(tree.stored_record(index).content, {'a': 1})


if __name__ == '__main__':
    unittest.main()
