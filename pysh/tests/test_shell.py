"""
Shell Orchestrator Tests

Pipelines, redirection, exit status, cancellation and history.

Author: YSNRFD
Version: 1.0.0
"""

import asyncio
import unittest

from pysh.tests.helpers import capture_streams, make_shell, read, write


class TestPipelines(unittest.IsolatedAsyncioTestCase):
    """Test argument-passing pipes."""

    async def asyncSetUp(self):
        self.shell, self.renderer = make_shell()

    async def test_simple_command(self):
        """Test output reaches the renderer."""
        status = await self.shell.execute_command('echo hello world')
        self.assertEqual(status, 0)
        self.assertEqual(self.renderer.text, 'hello world\n')

    async def test_pipe_passes_output_as_argument(self):
        """Test the previous stdout becomes the first argument."""
        status = await self.shell.execute_command('echo "a b" | echo > out.txt')
        self.assertEqual(status, 0)
        self.assertEqual(read(self.shell, 'out.txt'), 'a b\n')
        self.assertEqual(self.renderer.text, '')

    async def test_failed_stage_does_not_stop_pipeline(self):
        """Test a failing stage passes nothing on and the last status wins."""
        status = await self.shell.execute_command('cat missing.txt | echo ok > out.txt')
        self.assertEqual(status, 0)
        self.assertEqual(read(self.shell, 'out.txt'), 'ok\n')
        self.assertIn('No such file or directory', self.renderer.error_text)

    async def test_only_last_stage_is_shown(self):
        """Test intermediate stdout is captured, not displayed."""
        await self.shell.execute_command('echo first | echo second')
        self.assertEqual(self.renderer.text, 'first second\n')

    async def test_pipe_into_file_command(self):
        """Test piped text is treated as an operand by file commands."""
        write(self.shell, 'names.txt', 'alice\nbob\n')
        await self.shell.execute_command('echo names.txt | cat')
        self.assertEqual(self.renderer.text, 'alice\nbob\n')


class TestRedirection(unittest.IsolatedAsyncioTestCase):
    """Test stdout and stderr redirection of the final stage."""

    async def asyncSetUp(self):
        self.shell, self.renderer = make_shell()

    async def test_write_and_append(self):
        """Test > truncates and >> appends."""
        await self.shell.execute_command('echo one > log.txt')
        await self.shell.execute_command('echo two >> log.txt')
        self.assertEqual(read(self.shell, 'log.txt'), 'one\ntwo\n')

        await self.shell.execute_command('echo three > log.txt')
        self.assertEqual(read(self.shell, 'log.txt'), 'three\n')

    async def test_created_file_mode(self):
        """Test redirect targets get the configured default mode."""
        await self.shell.execute_command('echo x > new.txt')
        node = self.shell.context.fs.get_node('/home/guest/new.txt', 'guest', 'guest')
        self.assertEqual(node.permissions, 'rw-r--r--')
        self.assertEqual(node.owner, 'guest')

    async def test_dev_null(self):
        """Test output to /dev/null is discarded, quoted or not."""
        for line in ('echo hidden > /dev/null', 'echo hidden > "/dev/null"'):
            status = await self.shell.execute_command(line)
            self.assertEqual(status, 0)
        self.assertEqual(self.renderer.text, '')
        self.assertEqual(read(self.shell, '/dev/null'), '')

    async def test_variable_in_target(self):
        """Test redirect targets are expanded."""
        await self.shell.execute_command('echo hi > $HOME/expanded.txt')
        self.assertEqual(read(self.shell, '/home/guest/expanded.txt'), 'hi\n')

    async def test_stderr_to_file(self):
        """Test 2> captures errors and hides them from the screen."""
        status = await self.shell.execute_command('cat missing.txt 2> err.txt')
        self.assertEqual(status, 1)
        self.assertIn('No such file or directory', read(self.shell, 'err.txt'))
        self.assertEqual(self.renderer.error_text, '')

    async def test_merge_stderr(self):
        """Test 2>&1 sends errors to the stdout target."""
        write(self.shell, 'present.txt', 'here\n')
        status = await self.shell.execute_command('cat present.txt missing.txt > all.txt 2>&1')
        self.assertEqual(status, 1)
        content = read(self.shell, 'all.txt')
        self.assertTrue(content.startswith('here\n'))
        self.assertIn('missing.txt: No such file or directory', content)
        self.assertEqual(self.renderer.error_text, '')

    async def test_merge_without_stdout_target(self):
        """Test merged errors are shown as normal output."""
        await self.shell.execute_command('cat missing.txt 2>&1')
        self.assertIn('No such file or directory', self.renderer.text)
        self.assertEqual(self.renderer.error_text, '')

    async def test_quoted_glob_error_to_file(self):
        """Test a quoted glob is passed literally."""
        write(self.shell, 'g1.txt', 'A\n')
        await self.shell.execute_command('cat "g*.txt" 2> err.txt')
        self.assertIn('no such file', read(self.shell, 'err.txt').lower())

    async def test_glob_expansion(self):
        """Test an unquoted glob expands in sorted order."""
        write(self.shell, 'g2.txt', 'B\n')
        write(self.shell, 'g1.txt', 'A\n')
        await self.shell.execute_command('cat g*.txt > out.txt')
        self.assertEqual(read(self.shell, 'out.txt'), 'A\nB\n')

    async def test_unwritable_target(self):
        """Test redirect failures are reported and force status 1."""
        status = await self.shell.execute_command('echo hi > /etc/blocked.txt')
        self.assertEqual(status, 1)
        self.assertIn('pysh: /etc/blocked.txt: Permission denied', self.renderer.error_text)
        self.assertEqual(self.shell.context.env['?'], '1')

    async def test_missing_target_is_syntax_error(self):
        """Test a dangling operator is reported with status 2."""
        status = await self.shell.execute_command('echo hi >')
        self.assertEqual(status, 2)
        self.assertEqual(
            self.renderer.error_text,
            "pysh: syntax error near unexpected token 'newline'\n"
        )
        self.assertEqual(self.shell.context.env['LAST_EXIT_CODE'], '2')

    async def test_here_string(self):
        """Test <<< feeds stdin."""
        await self.shell.execute_command('cat <<< "$USER here"')
        self.assertEqual(self.renderer.text, 'guest here\n')


class TestExitStatus(unittest.IsolatedAsyncioTestCase):
    """Test $? and LAST_EXIT_CODE bookkeeping."""

    async def asyncSetUp(self):
        self.shell, self.renderer = make_shell()

    async def test_status_variable(self):
        """Test $? reflects the previous line."""
        await self.shell.execute_command('false')
        await self.shell.execute_command('echo $?')
        await self.shell.execute_command('true')
        await self.shell.execute_command('echo $?')
        self.assertEqual(self.renderer.text, '1\n0\n')

    async def test_last_stage_status(self):
        """Test a pipeline returns its last stage's status."""
        self.assertEqual(await self.shell.execute_command('false | true'), 0)
        self.assertEqual(await self.shell.execute_command('true | false'), 1)
        self.assertEqual(self.shell.context.env['LAST_EXIT_CODE'], '1')

    async def test_not_found(self):
        """Test unknown commands give 127."""
        status = await self.shell.execute_command('frobnicate')
        self.assertEqual(status, 127)
        self.assertEqual(
            self.renderer.error_text,
            "Command 'frobnicate' not found. Type 'help' for available commands.\n"
        )

    async def test_handler_error_is_contained(self):
        """Test an unexpected exception becomes status 1."""
        async def broken(args, context, io):
            raise RuntimeError('kaput')

        self.shell.register_command('broken', broken)
        status = await self.shell.execute_command('broken')
        self.assertEqual(status, 1)
        self.assertEqual(self.renderer.error_text, 'broken: kaput\n')

    async def test_filesystem_error_is_contained(self):
        """Test a filesystem exception becomes '<name>: <reason>'."""
        async def reader(args, context, io):
            context.fs.read_file('/root/secret', context.user, context.group)
            return 0

        self.shell.register_command('reader', reader)
        status = await self.shell.execute_command('reader')
        self.assertEqual(status, 1)
        self.assertEqual(self.renderer.error_text, 'reader: Permission denied\n')

    async def test_exit_at_top_level(self):
        """Test exit marks the session as finished."""
        status = await self.shell.execute_command('exit 4')
        self.assertEqual(status, 4)
        self.assertTrue(self.shell.exit_requested)
        self.assertEqual(self.shell.exit_code, 4)

    async def test_headless_output_goes_to_io(self):
        """Test headless runs write to the caller's streams."""
        io, out, err = capture_streams()
        await self.shell.execute_command('echo quiet', headless=True, io=io)
        await self.shell.execute_command('frobnicate', headless=True, io=io)
        self.assertEqual(''.join(out), 'quiet\n')
        self.assertIn('not found', ''.join(err))
        self.assertEqual(self.renderer.outputs, [])
        self.assertEqual(self.shell.context.history, [])


class TestCancellation(unittest.IsolatedAsyncioTestCase):
    """Test cooperative cancellation."""

    async def asyncSetUp(self):
        self.shell, self.renderer = make_shell()

    async def test_cancel_skips_remaining_stages(self):
        """Test cancelling mid-pipeline gives 130 and runs nothing more."""
        async def interrupting(args, context, io):
            context.shell.cancel_current_execution()
            return 0

        self.shell.register_command('interrupting', interrupting)
        status = await self.shell.execute_command('interrupting | echo after')
        self.assertEqual(status, 130)
        self.assertEqual(self.renderer.text, '')
        self.assertIn('^C', self.renderer.error_text)
        self.assertEqual(self.shell.context.env['?'], '130')
        self.assertFalse(self.shell.executing)

    async def test_cancel_when_idle(self):
        """Test Ctrl-C at an idle prompt only prints ^C."""
        self.shell.cancel_current_execution()
        self.assertEqual(self.renderer.error_text, '^C\n')
        self.assertEqual(self.shell.context.env['?'], '0')

    async def test_cancel_follow(self):
        """Test tail -f stops when the line is cancelled."""
        write(self.shell, 'live.log', 'start\n')
        task = asyncio.create_task(self.shell.execute_command('tail -f -s 0.01 live.log'))
        await asyncio.sleep(0.05)
        self.assertTrue(self.shell.executing)
        self.shell.cancel_current_execution()
        status = await asyncio.wait_for(task, timeout=2)
        self.assertEqual(status, 130)
        self.assertTrue(self.renderer.text.startswith('start\n'))

    async def test_new_line_gets_fresh_token(self):
        """Test a cancelled line does not affect the next one."""
        async def interrupting(args, context, io):
            context.shell.cancel_current_execution()
            return 0

        self.shell.register_command('interrupting', interrupting)
        await self.shell.execute_command('interrupting')
        status = await self.shell.execute_command('echo again')
        self.assertEqual(status, 0)
        self.assertEqual(self.renderer.text, 'again\n')


class TestSession(unittest.IsolatedAsyncioTestCase):
    """Test history and prompt handling."""

    async def test_history_and_prompt(self):
        """Test interactive lines are recorded and echoed."""
        shell, renderer = make_shell()
        await shell.execute_command('echo a')
        await shell.execute_command('   ')
        await shell.execute_command('cd /tmp')
        self.assertEqual(shell.context.history, ['echo a', 'cd /tmp'])
        self.assertEqual(renderer.commands[0], ('guest@pysh:~$ ', 'echo a'))
        self.assertEqual(renderer.prompts[-1], ('/tmp', '/home/guest'))
        self.assertEqual(shell.get_prompt(), 'guest@pysh:/tmp$ ')

    async def test_history_is_bounded(self):
        """Test history keeps only the newest entries."""
        from pysh.core.config_loader import Config

        config = Config()
        config.shell.history_size = 2
        shell, _ = make_shell(config)
        for word in ('one', 'two', 'three'):
            await shell.execute_command(f'echo {word}')
        self.assertEqual(shell.context.history, ['echo two', 'echo three'])


if __name__ == '__main__':
    unittest.main()
