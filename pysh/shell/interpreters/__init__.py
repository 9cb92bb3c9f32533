"""
PySH Script Interpreters

Interpreter ids registered by default:
- sh, /bin/sh, /usr/bin/sh, bash, /bin/bash: shell scripts
- node, /usr/bin/node, /usr/local/bin/node: restricted dialect
"""

from .base import Script, ScriptInterpreter
from .node_interpreter import NodeInterpreter
from .registry import InterpreterRegistry
from .shell_interpreter import ShellInterpreter


SHELL_IDS = ('sh', '/bin/sh', '/usr/bin/sh', 'bash', '/bin/bash')
NODE_IDS = ('node', '/usr/bin/node', '/usr/local/bin/node')


def create_default_registry(substitution_dir: str = "/tmp") -> InterpreterRegistry:
    """Registry with the shell and restricted interpreters under their usual ids."""
    registry = InterpreterRegistry()
    shell_interpreter = ShellInterpreter(substitution_dir)
    node_interpreter = NodeInterpreter()
    for interpreter_id in SHELL_IDS:
        registry.register(interpreter_id, shell_interpreter)
    for interpreter_id in NODE_IDS:
        registry.register(interpreter_id, node_interpreter)
    return registry


__all__ = [
    'Script',
    'ScriptInterpreter',
    'InterpreterRegistry',
    'ShellInterpreter',
    'NodeInterpreter',
    'SHELL_IDS',
    'NODE_IDS',
    'create_default_registry',
]
