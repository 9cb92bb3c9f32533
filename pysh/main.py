#!/usr/bin/env python3
"""
PySH - A POSIX-like Shell Simulation

This is the main entry point for PySH.

Startup sequence:
1. Load configuration (config.json next to this file, if present)
2. Initialize logging
3. Seed the virtual file system
4. Create the session context and shell
5. Run the interactive loop (or a single ``-c`` command)

Author: YSNRFD
Version: 1.0.0
"""

import asyncio
import os
import signal
import sys
from typing import List, Optional

from pysh.core.config_loader import Config, ConfigError, ConfigLoader
from pysh.filesystem.loader import seed_base_layout
from pysh.filesystem.vfs import VirtualFileSystem
from pysh.logger import Logger, LogLevel, get_logger
from pysh.presentation import ConsoleRenderer, Renderer
from pysh.shell.builtins import BuiltinCommands
from pysh.shell.context import create_context
from pysh.shell.shell import Shell


DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'config.json')


def load_config(config_path: Optional[str] = None) -> Config:
    """Load the configuration file if it exists, else use defaults."""
    loader = ConfigLoader()
    path = config_path or DEFAULT_CONFIG_PATH
    if config_path is None and not os.path.exists(path):
        return loader.config
    return loader.load(path)


def boot(config: Config, renderer: Optional[Renderer] = None) -> Shell:
    """
    Build a ready-to-use session.

    Seeds the file system (including a /bin entry per builtin), creates
    the context and the shell, and installs the builtins.
    """
    Logger.initialize(
        level=LogLevel.from_name(config.logging.level),
        log_file=config.logging.log_file,
        console_output=config.logging.console_output,
    )

    fs = VirtualFileSystem()
    context = create_context(fs, config)
    shell = Shell(context, renderer, config)
    builtins = BuiltinCommands(shell)
    builtins.install()
    seed_base_layout(fs, config, binaries=builtins.names())

    get_logger('main').info(
        "Session started",
        context={'user': config.session.user, 'commands': len(shell.registry)}
    )
    return shell


async def repl(shell: Shell) -> int:
    """Read and execute lines until ``exit`` or end of input."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, shell.cancel_current_execution)
    except (NotImplementedError, RuntimeError):
        # No loop signal handlers on this platform
        pass

    while not shell.exit_requested:
        try:
            line = await loop.run_in_executor(None, input, shell.get_prompt())
        except EOFError:
            sys.stdout.write('\n')
            break
        await shell.execute_command(line)

    return shell.exit_code if shell.exit_requested else shell.context.last_exit_code


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for PySH.

    Usage:
        pysh                  interactive session
        pysh -c COMMAND       run one command line and exit
        pysh --config PATH    use another configuration file
    """
    args = list(sys.argv[1:] if argv is None else argv)

    config_path = None
    if '--config' in args:
        index = args.index('--config')
        if index + 1 >= len(args):
            sys.stderr.write("pysh: --config requires a path\n")
            return 2
        config_path = args[index + 1]
        del args[index:index + 2]

    try:
        config = load_config(config_path)
    except ConfigError as e:
        sys.stderr.write(f"pysh: {e.message}\n")
        return 1

    shell = boot(config, ConsoleRenderer())

    if args and args[0] == '-c':
        if len(args) < 2:
            sys.stderr.write("pysh: -c: option requires an argument\n")
            return 2
        status = asyncio.run(shell.execute_command(args[1], headless=False))
        return shell.exit_code if shell.exit_requested else status

    try:
        return asyncio.run(repl(shell))
    except KeyboardInterrupt:
        sys.stdout.write('\n')
        return 130


if __name__ == '__main__':
    sys.exit(main())
