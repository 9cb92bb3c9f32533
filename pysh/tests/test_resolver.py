"""
Command Resolver Tests

Author: YSNRFD
Version: 1.0.0
"""

import unittest

from pysh.tests.helpers import make_shell, write


class TestShebang(unittest.TestCase):
    """Test interpreter id extraction."""

    def test_parse_shebang(self):
        """Test the forms a first line can take."""
        from pysh.shell.resolver import parse_shebang

        self.assertEqual(parse_shebang('#!/bin/sh\necho hi'), '/bin/sh')
        self.assertEqual(parse_shebang('#!/usr/bin/env node\n'), 'node')
        self.assertEqual(parse_shebang('#! bash -e'), 'bash')
        self.assertIsNone(parse_shebang('echo hi'))
        self.assertIsNone(parse_shebang('#!'))


class TestCommandResolver(unittest.TestCase):
    """Test resolution order and outcomes."""

    def setUp(self):
        self.shell, _ = make_shell()
        self.context = self.shell.context
        self.resolver = self.shell.resolver

    def resolve(self, name):
        return self.resolver.resolve(name, self.context)

    def test_builtin_name(self):
        """Test registered names win."""
        from pysh.shell.resolver import ResolutionKind

        result = self.resolve('cat')
        self.assertEqual(result.kind, ResolutionKind.BUILTIN)
        self.assertIs(result.handler, self.shell.registry.get('cat').handler)

    def test_executable_alias(self):
        """Test /bin and /usr/bin aliases of standard utilities."""
        from pysh.shell.resolver import ResolutionKind

        for path in ('/bin/cat', '/usr/bin/cat'):
            result = self.resolve(path)
            self.assertEqual(result.kind, ResolutionKind.EXECUTABLE, path)
            self.assertIs(result.handler, self.shell.registry.get('cat').handler)

    def test_binding_file(self):
        """Test a seeded binding file runs its builtin."""
        from pysh.shell.resolver import ResolutionKind

        result = self.resolve('/bin/history')
        self.assertEqual(result.kind, ResolutionKind.BUILTIN)
        self.assertEqual(result.path, '/bin/history')

    def test_script(self):
        """Test an executable file with a shebang needs an interpreter."""
        from pysh.shell.resolver import ResolutionKind

        write(self.shell, 'run.sh', '#!/bin/sh\necho hi\n', permissions='rwxr-xr-x')
        result = self.resolve('./run.sh')
        self.assertEqual(result.kind, ResolutionKind.SCRIPT)
        self.assertEqual(result.interpreter, '/bin/sh')
        self.assertEqual(result.path, '/home/guest/run.sh')

    def test_not_executable(self):
        """Test a file without the execute bit."""
        from pysh.shell.resolver import ResolutionKind

        write(self.shell, 'plain.sh', '#!/bin/sh\necho hi\n')
        self.assertEqual(self.resolve('./plain.sh').kind, ResolutionKind.NOT_EXECUTABLE)

    def test_not_found(self):
        """Test missing names, directories and handler-less files."""
        from pysh.shell.resolver import ResolutionKind

        write(self.shell, 'data.bin', 'no shebang', permissions='rwxr-xr-x')
        for name in ('./missing', '/tmp', './data.bin', 'nosuchcommand'):
            self.assertEqual(self.resolve(name).kind, ResolutionKind.NOT_FOUND, name)

    def test_path_search(self):
        """Test PATH directories are searched in order."""
        from pysh.shell.resolver import ResolutionKind

        write(self.shell, 'greet', '#!/bin/sh\necho hi\n', permissions='rwxr-xr-x')
        self.context.env['PATH'] = '/usr/local/bin:/home/guest:/bin'
        result = self.resolve('greet')
        self.assertEqual(result.kind, ResolutionKind.SCRIPT)
        self.assertEqual(result.path, '/home/guest/greet')

        self.context.env['PATH'] = ''
        self.assertEqual(self.resolve('greet').kind, ResolutionKind.NOT_FOUND)

    def test_path_stops_at_not_executable(self):
        """Test the first PATH hit wins even if it cannot run."""
        from pysh.shell.resolver import ResolutionKind

        self.context.fs.add_directory('/home/guest', 'first', 'guest', 'guest')
        self.context.fs.add_directory('/home/guest', 'second', 'guest', 'guest')
        write(self.shell, 'first/tool', '#!/bin/sh\n')
        write(self.shell, 'second/tool', '#!/bin/sh\n', permissions='rwxr-xr-x')
        self.context.env['PATH'] = '/home/guest/first:/home/guest/second'
        self.assertEqual(self.resolve('tool').kind, ResolutionKind.NOT_EXECUTABLE)


class TestResolverIntegration(unittest.IsolatedAsyncioTestCase):
    """Test how resolution outcomes surface in the shell."""

    async def asyncSetUp(self):
        self.shell, self.renderer = make_shell()

    async def test_run_script(self):
        """Test a shell script runs with positional parameters."""
        write(self.shell, 'hello.sh', '#!/bin/sh\necho hello $1 from $0\n', permissions='rwxr-xr-x')
        status = await self.shell.execute_command('./hello.sh world')
        self.assertEqual(status, 0)
        self.assertEqual(self.renderer.text, 'hello world from /home/guest/hello.sh\n')

    async def test_permission_denied(self):
        """Test a non-executable file gives 126."""
        write(self.shell, 'plain.sh', '#!/bin/sh\necho hi\n')
        status = await self.shell.execute_command('./plain.sh')
        self.assertEqual(status, 126)
        self.assertEqual(self.renderer.error_text, 'pysh: ./plain.sh: Permission denied\n')

    async def test_missing_path(self):
        """Test a missing path gives 127."""
        status = await self.shell.execute_command('./nothing')
        self.assertEqual(status, 127)

    async def test_absolute_builtin(self):
        """Test /bin/echo behaves like echo."""
        await self.shell.execute_command('/bin/echo "via path"')
        self.assertEqual(self.renderer.text, 'via path\n')


if __name__ == '__main__':
    unittest.main()
