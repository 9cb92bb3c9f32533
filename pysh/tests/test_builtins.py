"""
Built-in Command Tests

Author: YSNRFD
Version: 1.0.0
"""

import unittest

from pysh.tests.helpers import make_shell, write


class TestEscapes(unittest.TestCase):
    """Test echo escape handling and symbolic modes."""

    def test_interpret_escapes(self):
        """Test the supported backslash escapes."""
        from pysh.shell.builtins import interpret_escapes

        self.assertEqual(interpret_escapes('a\\tb\\n'), ('a\tb\n', False))
        self.assertEqual(interpret_escapes('\\x41\\0101'), ('AA', False))
        self.assertEqual(interpret_escapes('keep\\cdrop'), ('keep', True))
        self.assertEqual(interpret_escapes('\\q'), ('\\q', False))

    def test_symbolic_mode(self):
        """Test symbolic chmod expressions."""
        from pysh.shell.builtins import apply_symbolic_mode

        self.assertEqual(apply_symbolic_mode('rw-r--r--', 'u+x'), 'rwxr--r--')
        self.assertEqual(apply_symbolic_mode('rwxrwxrwx', 'go-w'), 'rwxr-xr-x')
        self.assertEqual(apply_symbolic_mode('rw-r--r--', '+x'), 'rwxr-xr-x')
        self.assertEqual(apply_symbolic_mode('rwxrwxrwx', 'o=r'), 'rwxrwxr--')
        self.assertIsNone(apply_symbolic_mode('rwxrwxrwx', 'z+q'))


class TestEcho(unittest.IsolatedAsyncioTestCase):
    """Test echo's own argument handling."""

    async def asyncSetUp(self):
        self.shell, self.renderer = make_shell()

    async def echo(self, line):
        self.renderer.outputs.clear()
        await self.shell.execute_command(line)
        return self.renderer.text

    async def test_quoting(self):
        """Test quote styles."""
        self.assertEqual(await self.echo("echo '$USER' \"$USER\" $USER"), '$USER guest guest\n')
        self.assertEqual(await self.echo('echo a\\ b'), 'a b\n')

    async def test_options(self):
        """Test -n, -e and option termination."""
        self.assertEqual(await self.echo('echo -n hi'), 'hi')
        self.assertEqual(await self.echo('echo -e "a\\tb"'), 'a\tb\n')
        self.assertEqual(await self.echo('echo "a\\tb"'), 'a\\tb\n')
        self.assertEqual(await self.echo('echo -e "x\\cy" z'), 'x')
        self.assertEqual(await self.echo('echo -- -n'), '-- -n\n')
        self.assertEqual(await self.echo('echo -x'), '-x\n')

    async def test_single_quotes_skip_escapes(self):
        """Test single-quoted words are printed verbatim."""
        self.assertEqual(await self.echo("echo -e 'a\\nb'"), 'a\\nb\n')


class TestFileCommands(unittest.IsolatedAsyncioTestCase):
    """Test the file management commands."""

    async def asyncSetUp(self):
        self.shell, self.renderer = make_shell()
        self.context = self.shell.context

    async def sh(self, line):
        self.renderer.outputs.clear()
        return await self.shell.execute_command(line)

    async def test_cd_and_pwd(self):
        """Test changing directories."""
        self.assertEqual(await self.sh('cd /tmp'), 0)
        await self.sh('pwd')
        self.assertEqual(self.renderer.text, '/tmp\n')

        await self.sh('cd -')
        self.assertEqual(self.context.cwd, '/home/guest')
        await self.sh('cd /tmp')
        await self.sh('cd')
        self.assertEqual(self.context.cwd, '/home/guest')

    async def test_cd_errors(self):
        """Test cd failures leave PWD alone."""
        write(self.shell, 'file.txt', '')
        self.assertEqual(await self.sh('cd nowhere'), 1)
        self.assertIn('No such file or directory', self.renderer.error_text)
        self.assertEqual(await self.sh('cd file.txt'), 1)
        self.assertIn('Not a directory', self.renderer.error_text)
        self.assertEqual(await self.sh('cd /root'), 1)
        self.assertIn('Permission denied', self.renderer.error_text)
        self.assertEqual(self.context.cwd, '/home/guest')

    async def test_mkdir_touch_ls(self):
        """Test creating and listing."""
        await self.sh('mkdir docs')
        await self.sh('touch docs/b.txt docs/a.txt docs/.hidden')
        await self.sh('ls docs')
        self.assertEqual(self.renderer.text, 'a.txt  b.txt\n')

        await self.sh('ls -a docs')
        self.assertEqual(self.renderer.text, '.hidden  a.txt  b.txt\n')

        await self.sh('ls -l docs/a.txt')
        self.assertRegex(self.renderer.text, r'^-rw-r--r-- guest\s+guest\s+0 docs/a.txt\n$')

    async def test_mkdir_parents(self):
        """Test mkdir -p and existing directories."""
        self.assertEqual(await self.sh('mkdir -p a/b/c'), 0)
        self.assertTrue(self.context.fs.is_directory('/home/guest/a/b/c', 'guest', 'guest'))
        self.assertEqual(await self.sh('mkdir -p a/b'), 0)
        self.assertEqual(await self.sh('mkdir a'), 1)
        self.assertIn('File exists', self.renderer.error_text)
        self.assertEqual(await self.sh('mkdir x/y'), 1)

    async def test_rm_and_rmdir(self):
        """Test removal commands."""
        await self.sh('mkdir -p tree/leaf')
        write(self.shell, 'tree/leaf/f.txt', 'x')

        self.assertEqual(await self.sh('rmdir tree/leaf'), 1)
        self.assertIn('Directory not empty', self.renderer.error_text)
        self.assertEqual(await self.sh('rm tree'), 1)
        self.assertIn('Is a directory', self.renderer.error_text)
        self.assertEqual(await self.sh('rm -r tree'), 0)
        self.assertFalse(self.context.fs.exists('/home/guest/tree', 'guest', 'guest'))

        self.assertEqual(await self.sh('rm gone.txt'), 1)
        self.assertEqual(await self.sh('rm -f gone.txt'), 0)

    async def test_chmod(self):
        """Test octal, string and symbolic modes."""
        write(self.shell, 'tool', '')
        fs = self.context.fs

        await self.sh('chmod 750 tool')
        self.assertEqual(fs.get_node('/home/guest/tool', 'guest', 'guest').permissions, 'rwxr-x---')
        await self.sh('chmod rw-rw-rw- tool')
        self.assertEqual(fs.get_node('/home/guest/tool', 'guest', 'guest').permissions, 'rw-rw-rw-')
        await self.sh('chmod u+x,o-w tool')
        self.assertEqual(fs.get_node('/home/guest/tool', 'guest', 'guest').permissions, 'rwxrw-r--')

        self.assertEqual(await self.sh('chmod 99 tool'), 1)
        self.assertIn("invalid mode", self.renderer.error_text)
        self.assertEqual(await self.sh('chmod 777 /etc/passwd'), 1)
        self.assertIn('Permission denied', self.renderer.error_text)

    async def test_chown(self):
        """Test giving a file away."""
        write(self.shell, 'gift.txt', '')
        self.assertEqual(await self.sh('chown alice:staff gift.txt'), 0)
        node = self.context.fs.get_node('/home/guest/gift.txt', 'guest', 'guest')
        self.assertEqual((node.owner, node.group), ('alice', 'staff'))
        self.assertEqual(await self.sh('chown guest gift.txt'), 1)

    async def test_cat_number_lines(self):
        """Test cat -n."""
        write(self.shell, 'lines.txt', 'a\nb\n')
        await self.sh('cat -n lines.txt')
        self.assertEqual(self.renderer.text, '     1\ta\n     2\tb\n')

    async def test_proc_from_shell(self):
        """Test /proc is readable but not writable from the prompt."""
        await self.sh('cat /proc/meminfo')
        self.assertIn('MemTotal', self.renderer.text)
        self.assertEqual(await self.sh('echo x > /proc/meminfo'), 1)
        self.assertIn('Permission denied', self.renderer.error_text)


class TestTail(unittest.IsolatedAsyncioTestCase):
    """Test tail."""

    async def asyncSetUp(self):
        self.shell, self.renderer = make_shell()
        write(self.shell, 'nums.txt', ''.join(f'{n}\n' for n in range(1, 21)))

    async def test_default_and_count(self):
        """Test the default 10 lines and -n."""
        await self.shell.execute_command('tail nums.txt')
        self.assertEqual(self.renderer.text, ''.join(f'{n}\n' for n in range(11, 21)))

        self.renderer.outputs.clear()
        await self.shell.execute_command('tail -n 2 nums.txt')
        self.assertEqual(self.renderer.text, '19\n20\n')

        self.renderer.outputs.clear()
        await self.shell.execute_command('tail -3 nums.txt')
        self.assertEqual(self.renderer.text, '18\n19\n20\n')

    async def test_missing_file(self):
        """Test an unreadable operand."""
        status = await self.shell.execute_command('tail nope.txt')
        self.assertEqual(status, 1)
        self.assertEqual(
            self.renderer.error_text,
            "tail: cannot open 'nope.txt' for reading: No such file or directory\n"
        )

    async def test_follow_poll_limit(self):
        """Test TAIL_MAX_POLL bounds tail -f."""
        self.shell.context.env['TAIL_MAX_POLL'] = '2'
        status = await self.shell.execute_command('tail -f -s 0 -n 1 nums.txt')
        self.assertEqual(status, 0)
        self.assertEqual(self.renderer.text, '20\n')


class TestSessionCommands(unittest.IsolatedAsyncioTestCase):
    """Test environment and session commands."""

    async def asyncSetUp(self):
        self.shell, self.renderer = make_shell()
        self.context = self.shell.context

    async def test_export_unset_env(self):
        """Test variable management."""
        await self.shell.execute_command('export GREETING=hi EMPTY')
        self.assertEqual(self.context.env['GREETING'], 'hi')
        self.assertEqual(self.context.env['EMPTY'], '')

        await self.shell.execute_command('env')
        self.assertIn('GREETING=hi\n', self.renderer.text)
        self.assertNotIn('?=', self.renderer.text)

        await self.shell.execute_command('unset GREETING')
        self.assertNotIn('GREETING', self.context.env)

        self.assertEqual(await self.shell.execute_command('export 1BAD=x'), 1)

    async def test_whoami(self):
        """Test whoami prints the session user."""
        await self.shell.execute_command('whoami')
        self.assertEqual(self.renderer.text, 'guest\n')

    async def test_history(self):
        """Test numbered history and clearing."""
        await self.shell.execute_command('echo a')
        self.renderer.outputs.clear()
        await self.shell.execute_command('history')
        self.assertEqual(self.renderer.text, '    1  echo a\n    2  history\n')

        await self.shell.execute_command('history -c')
        self.assertEqual(self.context.history, [])

    async def test_help(self):
        """Test help lists commands and shows usage."""
        await self.shell.execute_command('help')
        self.assertIn('Available commands:', self.renderer.text)
        self.assertIn('tail', self.renderer.text)

        self.renderer.outputs.clear()
        await self.shell.execute_command('help mkdir')
        self.assertTrue(self.renderer.text.startswith('mkdir: mkdir [-p] DIR...\n'))
        self.assertEqual(await self.shell.execute_command('help nothing'), 1)

    async def test_exit_code_argument(self):
        """Test exit validates its argument."""
        status = await self.shell.execute_command('exit nope')
        self.assertEqual(status, 2)
        self.assertTrue(self.shell.exit_requested)
        self.assertIn('numeric argument required', self.renderer.error_text)

    async def test_clear(self):
        """Test clear empties the renderer."""
        await self.shell.execute_command('echo something')
        await self.shell.execute_command('clear')
        self.assertEqual(self.renderer.outputs, [])


if __name__ == '__main__':
    unittest.main()
