#!/usr/bin/env python3
"""
Path resolver tests.

Run with: python -m pytest elxafs/tests -v
Or: python -m unittest discover elxafs/tests
"""

import unittest


class TestNormalize(unittest.TestCase):
    """Test canonical path normalization."""

    SAMPLES = [
        '', '/', '//', 'Root', '/Root/', '//Root//Users///kit/', 'a/b/c',
        '/a/./b', '/a/../b', ' /spaced name/ ', '/Recycle Bin/old (1).txt',
    ]

    def test_canonical_forms(self):
        """Test leading, trailing and repeated slashes."""
        from elxafs.filesystem.path_resolver import PathResolver

        self.assertEqual(PathResolver.normalize(''), '/')
        self.assertEqual(PathResolver.normalize(None), '/')
        self.assertEqual(PathResolver.normalize('//'), '/')
        self.assertEqual(PathResolver.normalize('Root'), '/Root')
        self.assertEqual(PathResolver.normalize('//Root//Users///kit/'), '/Root/Users/kit')

    def test_dot_segments_are_literal(self):
        """Test that dot segments are not interpreted."""
        from elxafs.filesystem.path_resolver import PathResolver

        self.assertEqual(PathResolver.normalize('/a/../b'), '/a/../b')

    def test_idempotent(self):
        """Test normalize(normalize(p)) == normalize(p)."""
        from elxafs.filesystem.path_resolver import PathResolver

        for sample in self.SAMPLES:
            once = PathResolver.normalize(sample)
            self.assertEqual(PathResolver.normalize(once), once, sample)

    def test_join_is_normalized(self):
        """Test that join results pass normalize unchanged."""
        from elxafs.filesystem.path_resolver import PathResolver

        for a in self.SAMPLES:
            for b in ('', 'x', '/x/', 'x//y'):
                joined = PathResolver.join(a, b)
                self.assertEqual(PathResolver.normalize(joined), joined)

        self.assertEqual(PathResolver.join('/Root/Users/', '/kit', ''), '/Root/Users/kit')
        self.assertEqual(PathResolver.join('/', 'Root'), '/Root')

    def test_non_string_rejected(self):
        """Test that non-string paths raise InvalidPathError."""
        from elxafs.filesystem.path_resolver import PathResolver
        from elxafs.exceptions import InvalidPathError

        with self.assertRaises(InvalidPathError):
            PathResolver.normalize(42)


class TestDecomposition(unittest.TestCase):
    """Test parent, basename and extension handling."""

    def test_parent_and_basename(self):
        from elxafs.filesystem.path_resolver import PathResolver

        self.assertEqual(PathResolver.parent('/Root/Users/kit'), '/Root/Users')
        self.assertEqual(PathResolver.parent('/Root'), '/')
        self.assertEqual(PathResolver.parent('/'), '/')
        self.assertEqual(PathResolver.basename('/Root/Users/kit/'), 'kit')
        self.assertEqual(PathResolver.basename('/'), '')
        self.assertEqual(PathResolver.split('/a/b'), ('/a', 'b'))

    def test_splitext(self):
        from elxafs.filesystem.path_resolver import PathResolver

        self.assertEqual(PathResolver.splitext('photo.final.png'), ('photo.final', '.png'))
        self.assertEqual(PathResolver.splitext('.settings'), ('.settings', ''))
        self.assertEqual(PathResolver.splitext('note'), ('note', ''))
        self.assertEqual(PathResolver.splitext('trailing.'), ('trailing.', ''))

    def test_descendants(self):
        """Test prefix matching on whole segments."""
        from elxafs.filesystem.path_resolver import PathResolver

        self.assertTrue(PathResolver.is_descendant('/a/b/c', '/a/b'))
        self.assertFalse(PathResolver.is_descendant('/a/bc', '/a/b'))
        self.assertFalse(PathResolver.is_descendant('/a/b', '/a/b'))
        self.assertTrue(PathResolver.is_same_or_descendant('/a/b', '/a/b'))
        self.assertTrue(PathResolver.is_descendant('/a', '/'))

    def test_relabel(self):
        from elxafs.filesystem.path_resolver import PathResolver

        self.assertEqual(PathResolver.relabel('/a/b/c', '/a/b', '/x'), '/x/c')
        self.assertEqual(PathResolver.relabel('/a/b', '/a/b', '/x/y'), '/x/y')
        with self.assertRaises(ValueError):
            PathResolver.relabel('/a/bc', '/a/b', '/x')

    def test_validate_name(self):
        """Test rejected folder and file names."""
        from elxafs.filesystem.path_resolver import PathResolver
        from elxafs.exceptions import InvalidNameError

        self.assertEqual(PathResolver.validate_name('My File.txt'), 'My File.txt')
        for bad in ('', 'a/b', '.', '..', None):
            with self.assertRaises(InvalidNameError):
                PathResolver.validate_name(bad)


if __name__ == '__main__':
    unittest.main()
