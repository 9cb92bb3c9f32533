"""
Configuration, Logging and Registry Tests

Author: YSNRFD
Version: 1.0.0
"""

import contextlib
import io
import json
import os
import tempfile
import unittest


class TestConfig(unittest.TestCase):
    """Test the configuration loader."""

    def setUp(self):
        from pysh.core.config_loader import ConfigLoader
        self.loader = ConfigLoader()
        self.loader.reset()
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.loader.reset()
        self.tmpdir.cleanup()

    def write_config(self, text):
        path = os.path.join(self.tmpdir.name, 'config.json')
        with open(path, 'w', encoding='utf-8') as f:
            f.write(text)
        return path

    def test_defaults(self):
        """Test default values."""
        from pysh.core.config_loader import Config

        config = Config()
        self.assertEqual(config.session.user, 'guest')
        self.assertEqual(config.session.home, '/home/guest')
        self.assertEqual(config.filesystem.null_device, '/dev/null')
        self.assertEqual(config.shell.bin_dirs, ['/bin', '/usr/bin'])
        self.assertEqual(config.logging.level, 'INFO')

    def test_singleton(self):
        """Test the loader is shared."""
        from pysh.core.config_loader import ConfigLoader
        self.assertIs(ConfigLoader(), self.loader)

    def test_partial_file(self):
        """Test missing keys fall back to defaults."""
        path = self.write_config(json.dumps({'session': {'user': 'alice'}}))
        config = self.loader.load(path)
        self.assertEqual(config.session.user, 'alice')
        self.assertEqual(config.session.group, 'guest')
        self.assertEqual(config.shell.history_size, 1000)

    def test_packaged_file_matches_defaults(self):
        """Test the shipped config.json holds the default values."""
        from pysh.core.config_loader import Config
        from pysh.main import DEFAULT_CONFIG_PATH

        self.loader.load(DEFAULT_CONFIG_PATH)
        expected = self.loader.to_dict()
        self.loader.reset()
        self.assertEqual(self.loader.to_dict(), expected)
        self.assertEqual(expected['shell']['bin_dirs'], Config().shell.bin_dirs)

    def test_get_and_set(self):
        """Test dot-notation access."""
        from pysh.core.config_loader import ConfigError

        self.assertEqual(self.loader.get('shell.history_size'), 1000)
        self.assertEqual(self.loader.get('shell.missing', 'fallback'), 'fallback')

        self.loader.set('shell.history_size', 5)
        self.assertEqual(self.loader.get('shell.history_size'), 5)

        with self.assertRaises(ConfigError):
            self.loader.set('nowhere.key', 1)
        with self.assertRaises(ConfigError):
            self.loader.set('shell.nothing', 1)

    def test_errors(self):
        """Test unreadable configuration files."""
        from pysh.core.config_loader import ConfigError

        missing = os.path.join(self.tmpdir.name, 'absent.json')
        with self.assertRaises(ConfigError) as ctx:
            self.loader.load(missing)
        self.assertEqual(ctx.exception.path, missing)

        with self.assertRaises(ConfigError):
            self.loader.load(self.write_config('{not json'))


class TestLogger(unittest.TestCase):
    """Test logging setup."""

    def test_one_instance_per_subsystem(self):
        """Test repeated construction returns the same logger."""
        from pysh.logger import Logger, get_logger

        self.assertIs(Logger('tests'), get_logger('tests'))
        self.assertIsNot(get_logger('tests'), get_logger('other'))

    def test_level_names(self):
        """Test config level names."""
        from pysh.logger import LogLevel

        self.assertEqual(LogLevel.from_name('debug'), LogLevel.DEBUG)
        self.assertEqual(LogLevel.from_name('Error'), LogLevel.ERROR)
        self.assertEqual(LogLevel.from_name('chatty'), LogLevel.INFO)

    def test_session_logs(self):
        """Test booting a session is recorded in memory."""
        from pysh.logger import Logger
        from pysh.tests.helpers import make_shell

        make_shell()
        messages = [entry['message'] for entry in Logger.get_session_logs(subsystem='main')]
        self.assertIn('Session started', messages)


class TestRegistry(unittest.TestCase):
    """Test command registration rules."""

    def setUp(self):
        from pysh.core.registry import CommandRegistry
        self.registry = CommandRegistry()

    def test_register_and_lookup(self):
        """Test basic registration."""
        async def hello(args, context, io):
            return 0

        entry = self.registry.register('hello', hello, 'Say hello', usage='hello')
        self.assertIs(self.registry.get('hello'), entry)
        self.assertIn('hello', self.registry)
        self.assertEqual(len(self.registry), 1)
        self.assertFalse(entry.raw_args)

        self.assertTrue(self.registry.unregister('hello'))
        self.assertFalse(self.registry.unregister('hello'))

    def test_rejects_bad_input(self):
        """Test names and handlers are validated."""
        async def ok(args, context, io):
            return 0

        def sync_handler(args, context, io):
            return 0

        with self.assertRaises(TypeError):
            self.registry.register('sync', sync_handler)
        for name in ('', 'two words', 'a/b'):
            with self.assertRaises(ValueError):
                self.registry.register(name, ok)

    def test_standard_utilities(self):
        """Test the standard utility set is known."""
        self.assertTrue(self.registry.is_standard_utility('cat'))
        self.assertFalse(self.registry.is_standard_utility('frobnicate'))


class TestExceptions(unittest.TestCase):
    """Test the exception hierarchy."""

    def test_filesystem_exceptions(self):
        """Test strerror and codes."""
        from pysh.exceptions import (
            DirectoryNotEmptyError,
            FileNotFoundError,
            FileSystemException,
            PermissionDeniedError,
        )

        e = FileNotFoundError('/x')
        self.assertIsInstance(e, FileSystemException)
        self.assertEqual(e.strerror, 'No such file or directory')
        self.assertEqual(e.path, '/x')
        self.assertTrue(str(e).startswith('[Error 4001]'))

        denied = PermissionDeniedError('/root', operation='read', user='guest')
        self.assertEqual(denied.strerror, 'Permission denied')
        self.assertEqual(denied.context['operation'], 'read')
        self.assertEqual(DirectoryNotEmptyError('/d').strerror, 'Directory not empty')

    def test_shell_exceptions(self):
        """Test exit codes carried by shell errors."""
        from pysh.exceptions import (
            CommandNotFoundError,
            NotExecutableError,
            ShellException,
            ShellExit,
            ShellSyntaxError,
        )

        self.assertEqual(CommandNotFoundError('x').exit_code, 127)
        self.assertEqual(NotExecutableError('x').exit_code, 126)
        syntax = ShellSyntaxError('|')
        self.assertIsInstance(syntax, ShellException)
        self.assertEqual(syntax.exit_code, 2)
        self.assertEqual(syntax.message, "syntax error near unexpected token '|'")

        self.assertFalse(issubclass(ShellExit, Exception))
        self.assertEqual(ShellExit(3).code, 3)


class TestMain(unittest.TestCase):
    """Test the command line entry point."""

    def tearDown(self):
        from pysh.core.config_loader import ConfigLoader
        ConfigLoader().reset()

    def test_single_command(self):
        """Test -c runs one line and returns its status."""
        from pysh.main import main

        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            self.assertEqual(main(['-c', 'exit 5']), 5)
            self.assertEqual(main(['-c', 'echo hi']), 0)
        self.assertIn('hi\n', out.getvalue())

    def test_missing_config(self):
        """Test a bad --config path is reported."""
        from pysh.main import main

        err = io.StringIO()
        with contextlib.redirect_stderr(err):
            status = main(['--config', os.path.join(tempfile.gettempdir(), 'no-such-pysh.json')])
        self.assertEqual(status, 1)
        self.assertIn('Configuration file not found', err.getvalue())


if __name__ == '__main__':
    unittest.main()
