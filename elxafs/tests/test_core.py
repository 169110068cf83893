#!/usr/bin/env python3
"""
Core tests: exceptions, logging and configuration.

Run with: python -m pytest elxafs/tests -v
"""

import json
import os
import shutil
import tempfile
import unittest


class TestExceptions(unittest.TestCase):
    """Test the exception hierarchy."""

    def test_base_exception(self):
        """Test ElxaFSError creation and properties."""
        from elxafs.exceptions import ElxaFSError

        exc = ElxaFSError("Test error", path='/Root', error_code=42, recoverable=True)

        self.assertEqual(exc.message, "Test error")
        self.assertEqual(exc.error_code, 42)
        self.assertTrue(exc.recoverable)
        self.assertEqual(str(exc), "[Error 42] Test error (path=/Root)")
        self.assertEqual(exc.context['path'], '/Root')

    def test_filesystem_codes(self):
        from elxafs.exceptions import (
            FileSystemException, NotFoundError, AlreadyExistsError, ProtectedError,
            ProtectedChildError, CyclicMoveError, InvalidNameError,
        )

        cases = [
            (NotFoundError('/a', kind='folder'), 4001),
            (AlreadyExistsError('/a'), 4002),
            (ProtectedError('/Root/System', operation='delete'), 4003),
            (ProtectedChildError('/a', child='/a/b'), 4004),
            (CyclicMoveError('/a', target='/a/b'), 4005),
            (InvalidNameError('a/b'), 4007),
        ]
        for exc, code in cases:
            self.assertIsInstance(exc, FileSystemException)
            self.assertEqual(exc.error_code, code)
            self.assertFalse(exc.recoverable)

        self.assertEqual(NotFoundError('/a', kind='folder').message, "Folder not found: /a")

    def test_backend_errors_recoverable(self):
        from elxafs.exceptions import BackendUnavailableError, BackendTimeoutError, StorageException

        for exc in (BackendUnavailableError(), BackendTimeoutError('load', 1.5, path='/a')):
            self.assertIsInstance(exc, StorageException)
            self.assertTrue(exc.recoverable)


class TestLogger(unittest.TestCase):
    """Test the logging system."""

    def setUp(self):
        from elxafs.logger import Logger, LogLevel

        Logger.reset()
        Logger.initialize(level=LogLevel.DEBUG, console_output=False)

    def tearDown(self):
        from elxafs.logger import Logger

        Logger.reset()

    def test_logger_singleton(self):
        """Test one logger per subsystem."""
        from elxafs.logger import Logger, get_logger

        self.assertIs(Logger('vfs'), get_logger('vfs'))
        self.assertIsNot(Logger('vfs'), Logger('store'))

    def test_event_buffer(self):
        """Test events are captured with subsystem and context."""
        from elxafs.logger import Logger, get_logger

        get_logger('test-events').notice("Something happened", context={'path': '/Root'})
        logs = Logger.get_event_logs(subsystem='test-events')

        self.assertEqual(len(logs), 1)
        self.assertEqual(logs[0]['level'], 'NOTICE')
        self.assertEqual(logs[0]['context'], {'path': '/Root'})

    def test_formatter(self):
        import logging
        from elxafs.logger import LogFormatter

        record = logging.LogRecord('elxafs.vfs', logging.INFO, __file__, 1, "Folder created", None, None)
        record.subsystem = 'vfs'
        record.context = {'path': '/Root/a'}
        line = LogFormatter(use_colors=False).format(record)

        self.assertIn('INFO', line)
        self.assertIn('[vfs] Folder created {path=/Root/a}', line)

    def test_levels(self):
        from elxafs.logger import LogLevel

        self.assertTrue(LogLevel.NOTICE > LogLevel.INFO)
        self.assertTrue(LogLevel.NOTICE < LogLevel.WARNING)


class TestConfig(unittest.TestCase):
    """Test the configuration system."""

    def setUp(self):
        from elxafs.core.config_loader import ConfigLoader

        self.tmpdir = tempfile.mkdtemp()
        ConfigLoader().reset()

    def tearDown(self):
        from elxafs.core.config_loader import ConfigLoader

        ConfigLoader().reset()
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def _write(self, data) -> str:
        path = os.path.join(self.tmpdir, 'elxafs.json')
        with open(path, 'w', encoding='utf-8') as f:
            f.write(data if isinstance(data, str) else json.dumps(data))
        return path

    def test_default_config(self):
        """Test default configuration values."""
        from elxafs.core.config_loader import Config

        config = Config()

        self.assertEqual(config.root_path, '/Root')
        self.assertEqual(config.users_root, '/Root/Users')
        self.assertEqual(config.recycle_bin_path, '/Root/Recycle Bin')
        self.assertEqual(config.storage.external_threshold_bytes, 102400)
        self.assertEqual(config.filesystem.default_user, 'default')

    def test_load_file(self):
        from elxafs.core.config_loader import ConfigLoader, get_config

        path = self._write({
            'filesystem': {'default_user': 'kit', 'show_hidden': True},
            'storage': {'backend': 'json', 'data_dir': self.tmpdir},
        })
        config = ConfigLoader().load(path)

        self.assertEqual(config.filesystem.default_user, 'kit')
        self.assertTrue(config.filesystem.show_hidden)
        self.assertEqual(config.filesystem.root_name, 'Root')
        self.assertEqual(get_config().storage.backend, 'json')

    def test_load_failures(self):
        from elxafs.core.config_loader import ConfigLoader
        from elxafs.exceptions import BootFailureError, ConfigValidationError

        loader = ConfigLoader()
        with self.assertRaises(BootFailureError):
            loader.load(os.path.join(self.tmpdir, 'missing.json'))
        with self.assertRaises(BootFailureError):
            loader.load(self._write('{broken'))
        with self.assertRaises(ConfigValidationError):
            loader.load(self._write({'storage': {'backend': 'floppy'}}))
        with self.assertRaises(ConfigValidationError):
            loader.load(self._write({'filesystem': {'users_folder': 'a/b'}}))

    def test_get_and_set(self):
        from elxafs.core.config_loader import ConfigLoader
        from elxafs.exceptions import ConfigValidationError

        loader = ConfigLoader()
        loader.set('storage.backend_timeout', 1.0)

        self.assertEqual(loader.get('storage.backend_timeout'), 1.0)
        self.assertEqual(loader.get('storage.nothing', 'fallback'), 'fallback')
        with self.assertRaises(ConfigValidationError):
            loader.set('storage.nothing', 1)
        self.assertEqual(loader.to_dict()['storage']['backend_timeout'], 1.0)


if __name__ == '__main__':
    unittest.main()
