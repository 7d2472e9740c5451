"""In-memory stand-ins for executors and metric sources, plus sample outputs."""

from __future__ import annotations

import threading

from host_metrics.address import Address
from host_metrics.ostype import OSType
from host_metrics.source.base import OSSource
from host_metrics.source.executor import ExecutionResult, NativeExecutor


class RecordingExecutor(NativeExecutor):
    """Records every command and answers from a table of canned results.

    *responses* maps a command string to either an :class:`ExecutionResult`,
    a stdout string (exit code 0) or an exception instance to raise.
    """

    def __init__(self, responses=None, default=None):
        self.responses = dict(responses or {})
        self.default = default if default is not None else ExecutionResult(127, None, "command not found")
        self.executed_commands: list[str] = []
        self.opened = 0
        self.closed = 0
        self._lock = threading.Lock()

    def execute(self, command, timeout=None):
        with self._lock:
            self.executed_commands.append(command)
        response = self.responses.get(command, self.default)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, str):
            return ExecutionResult(0, response or None, None)
        return response

    def open(self):
        self.opened += 1

    def close(self):
        self.closed += 1

    def count(self, command):
        return self.executed_commands.count(command)


class FakeOS(OSSource):
    """A source whose files live in a dict and whose commands go to a RecordingExecutor."""

    def __init__(self, *, os_type=OSType.LINUX, files=None, responses=None, max_workers=1, address=None):
        super().__init__(
            address or Address.parse("ssh://tester@fake-host:22"),
            RecordingExecutor(responses),
            os_type=os_type,
            max_workers=max_workers,
        )
        self.files = dict(files or {})
        self.read_paths: list[str] = []

    def _detect_os_type(self):
        return OSType.UNKNOWN

    def _read_file(self, path):
        self.read_paths.append(path)
        content = self.files.get(path)
        if content is None:
            raise FileNotFoundError(path)
        if isinstance(content, Exception):
            raise content
        return content.encode("utf-8") if isinstance(content, str) else content


LINUX_TOP_OUTPUT = """\
top - 11:10:11 up 0 min,  1 user,  load average: 0.15, 0.04, 0.02
Tasks:   0 total,   0 running,   0 sleeping,   0 stopped,   0 zombie
%Cpu(s):  2.8 us,  8.1 sy,  0.0 ni, 88.7 id,  0.4 wa,  0.0 hi,  0.1 si,  0.0 st
KiB Mem :   999936 total,   735636 free,   117680 used,   146620 buff/cache
KiB Swap:  2097148 total,  2096124 free,     1024 used.   715840 avail Mem

  PID USER      PR  NI    VIRT    RES    SHR S  %CPU %MEM     TIME+ COMMAND
"""

MAC_TOP_OUTPUT = """\
Processes: 340 total, 2 running, 338 sleeping, 1605 threads
2017/06/23 09:41:17
Load Avg: 2.29, 2.02, 1.90
CPU usage: 2.73% user, 10.95% sys, 86.30% idle
SharedLibs: 140M resident, 43M data, 21M linkedit.
MemRegions: 62012 total, 2658M resident, 115M private, 1144M shared.
PhysMem: 12G used (2149M wired), 4305M unused.
VM: 2543G vsize, 1063M framework vsize, 0(0) swapins, 0(0) swapouts.
"""

PROC_MEMINFO_CONTENT = """\
MemTotal:        1999936 kB
MemFree:          735636 kB
MemAvailable:    1215840 kB
Buffers:           46620 kB
Cached:           100000 kB
SwapCached:            0 kB
Active(anon):      12345 kB
SwapTotal:       2097148 kB
SwapFree:        2096124 kB
HugePages_Total:       0
Hugepagesize:       2048 kB
"""

PROC_LOADAVG_CONTENT = "0.50 0.75 0.80 2/500 12345\n"



PROC_STAT_CONTENT = "cpu 1 2 3 4 5 6 7 8 9 10\ncpu0 1 2 3 4 5 6 7 8 9 10\nintr 12345\nctxt 67890\n"
