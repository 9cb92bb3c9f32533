"""
Device Files

Static content for the informational files under /proc. The content is
generated once when the tree is seeded; the files are read-only for
every requester afterwards.
"""

import platform
import time
from typing import Callable


_BOOT_TIME = time.time()


def _cpuinfo() -> str:
    lines = []
    for index in range(2):
        lines.extend([
            f"processor\t: {index}",
            "vendor_id\t: PySH",
            "model name\t: Virtual CPU @ 2.40GHz",
            "cpu MHz\t\t: 2400.000",
            "cache size\t: 4096 KB",
            "",
        ])
    return "\n".join(lines)


def _meminfo() -> str:
    return (
        "MemTotal:        2048000 kB\n"
        "MemFree:         1536000 kB\n"
        "MemAvailable:    1792000 kB\n"
        "Buffers:           32000 kB\n"
        "Cached:           256000 kB\n"
        "SwapTotal:             0 kB\n"
        "SwapFree:              0 kB\n"
    )


def _uptime() -> str:
    uptime = max(time.time() - _BOOT_TIME, 0.01)
    return f"{uptime:.2f} {uptime * 1.9:.2f}\n"


def _version() -> str:
    return (
        f"Linux version 6.1.0-pysh (pysh@{platform.node() or 'localhost'}) "
        f"(python {platform.python_version()}) #1 SMP\n"
    )


def _loadavg() -> str:
    return "0.08 0.03 0.01 1/64 1\n"


def _stat() -> str:
    boot = int(_BOOT_TIME)
    return (
        "cpu  1200 0 800 96000 40 0 12 0 0 0\n"
        "cpu0 600 0 400 48000 20 0 6 0 0 0\n"
        "cpu1 600 0 400 48000 20 0 6 0 0 0\n"
        f"btime {boot}\n"
        "processes 64\n"
        "procs_running 1\n"
        "procs_blocked 0\n"
    )


PROC_FILES: dict[str, Callable[[], str]] = {
    'cpuinfo': _cpuinfo,
    'meminfo': _meminfo,
    'uptime': _uptime,
    'version': _version,
    'loadavg': _loadavg,
    'stat': _stat,
}


def render_proc_files() -> dict[str, str]:
    """Name to content for every /proc file."""
    return {name: generate() for name, generate in PROC_FILES.items()}
