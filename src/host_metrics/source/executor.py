"""Native command execution, locally or over SSH.

Executors report non-zero exit codes in the returned
:class:`ExecutionResult`; they raise :class:`ExecutionError` only when the
command could not be run at all (spawn failure, timeout, transport failure).
"""

from __future__ import annotations

import abc
import logging
import os
import shlex
import shutil
import subprocess
import tempfile
from dataclasses import dataclass

from ..address import Address
from ..config import SSHOptions
from ..errors import ExecutionError

logger = logging.getLogger(__name__)

# ssh exits with 255 when the connection itself fails
SSH_TRANSPORT_FAILURE = 255


@dataclass(frozen=True)
class ExecutionResult:
    exit_code: int
    stdout: str | None = None
    stderr: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


class NativeExecutor(abc.ABC):
    """Runs a command line and captures exit code, stdout and stderr."""

    @abc.abstractmethod
    def execute(self, command: str, timeout: float | None = None) -> ExecutionResult:
        """Run *command*; stdout/stderr are None when the child emitted nothing."""

    def open(self) -> None:
        """Acquire transport resources. Local execution needs none."""

    def close(self) -> None:
        """Release what :meth:`open` acquired."""


def _run(argv: list[str], command: str, timeout: float | None) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(
            argv,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise ExecutionError(command, f"timed out after {timeout}s") from e
    except OSError as e:
        raise ExecutionError(command, f"could not be started: {e}") from e


class LocalExecutor(NativeExecutor):
    """Executes commands as child processes of this process. Honours PATH."""

    def execute(self, command: str, timeout: float | None = None) -> ExecutionResult:
        try:
            argv = shlex.split(command)
        except ValueError as e:
            raise ExecutionError(command, f"cannot be tokenized: {e}") from e
        if not argv:
            raise ExecutionError(command, "is empty")
        proc = _run(argv, command, timeout)
        return ExecutionResult(proc.returncode, proc.stdout or None, proc.stderr or None)

    def __repr__(self) -> str:
        return "LocalExecutor()"


class SSHExecutor(NativeExecutor):
    """Executes commands on a remote host through the ``ssh`` client.

    With ``options.multiplex`` enabled, :meth:`open` starts a ControlMaster
    connection that subsequent commands reuse and :meth:`close` tears down.
    """

    def __init__(self, address: Address, options: SSHOptions | None = None) -> None:
        if address.is_local:
            raise ExecutionError(str(address), "is not a remote address")
        self._address = address
        self._options = options or SSHOptions()
        self._control_path: str | None = None
        self._control_dir: str | None = None

    @property
    def address(self) -> Address:
        return self._address

    def build_command(self, remote_command: str, *extra: str) -> list[str]:
        opts = self._options
        cmd = [
            "ssh",
            "-o", f"BatchMode={'yes' if opts.batch_mode else 'no'}",
            "-o", f"ConnectTimeout={opts.connect_timeout}",
            "-o", f"StrictHostKeyChecking={opts.strict_host_key_checking}",
            "-p", str(self._address.port),
        ]
        if self._address.user:
            cmd.extend(["-l", self._address.user])
        if opts.identity_file:
            cmd.extend(["-i", os.path.expanduser(opts.identity_file)])
        if self._control_path:
            cmd.extend(["-o", f"ControlPath={self._control_path}"])
        cmd.extend(extra)
        cmd.append(self._address.host)
        if remote_command:
            cmd.append(remote_command)
        return cmd

    def open(self) -> None:
        if shutil.which("ssh") is None:
            raise ExecutionError("ssh", "client not found on PATH")
        if not self._options.multiplex or self._control_path:
            return
        # one socket directory per executor
        self._control_dir = tempfile.mkdtemp(prefix="host-metrics-")
        self._control_path = os.path.join(self._control_dir, "%C")
        argv = self.build_command("", "-o", "ControlMaster=yes", "-o", "ControlPersist=yes", "-N", "-f")
        try:
            proc = _run(argv, "ssh master", self._options.connect_timeout + 5)
        except ExecutionError:
            self._release_control_dir()
            raise
        if proc.returncode != 0:
            self._release_control_dir()
            raise ExecutionError(
                "ssh master",
                f"failed to connect to {self._address} (exit code {proc.returncode}): {proc.stderr.strip()}",
            )
        logger.debug("opened ssh master connection to %s", self._address)

    def close(self) -> None:
        if not self._control_path:
            return
        argv = self.build_command("", "-O", "exit")
        try:
            _run(argv, "ssh -O exit", self._options.connect_timeout)
        except ExecutionError as e:
            logger.warning("failed to close ssh master connection to %s: %s", self._address, e)
        finally:
            self._release_control_dir()
        logger.debug("closed ssh master connection to %s", self._address)

    def _release_control_dir(self) -> None:
        self._control_path = None
        if self._control_dir:
            shutil.rmtree(self._control_dir, ignore_errors=True)
            self._control_dir = None

    def execute(self, command: str, timeout: float | None = None) -> ExecutionResult:
        proc = _run(self.build_command(command), command, timeout)
        if proc.returncode == SSH_TRANSPORT_FAILURE:
            raise ExecutionError(
                command,
                f"ssh transport to {self._address} failed: {(proc.stderr or '').strip() or 'no stderr'}",
            )
        return ExecutionResult(proc.returncode, proc.stdout or None, proc.stderr or None)

    def __repr__(self) -> str:
        return f"SSHExecutor({self._address})"
