"""A host reached over SSH.

Commands and file reads travel over the ``ssh`` client. When no OS type is
configured, :meth:`RemoteOS.start` asks the host with ``uname -s``.
"""

from __future__ import annotations

import logging
import shlex

from ..address import Address
from ..config import SSHOptions
from ..errors import ExecutionError, InvalidAddressError
from ..ostype import OSType
from .base import DEFAULT_MAX_WORKERS, DEFAULT_TIMEOUT_SECONDS, OSSource
from .executor import NativeExecutor, SSHExecutor

logger = logging.getLogger(__name__)

UNAME_COMMAND = "uname -s"

_UNAME_TO_OS_TYPE = {
    "linux": OSType.LINUX,
    "darwin": OSType.MAC,
}


class RemoteOS(OSSource):
    def __init__(
        self,
        address: Address,
        *,
        ssh_options: SSHOptions | None = None,
        os_type: OSType | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_workers: int = DEFAULT_MAX_WORKERS,
        executor: NativeExecutor | None = None,
    ) -> None:
        if address.is_local:
            raise InvalidAddressError(str(address), "a remote source needs an ssh address")
        super().__init__(
            address,
            executor or SSHExecutor(address, ssh_options),
            os_type=os_type,
            timeout=timeout,
            max_workers=max_workers,
        )
        self._detected: OSType | None = None

    def _on_start(self) -> None:
        try:
            self.executor.open()
        except ExecutionError as e:
            logger.warning("failed to open connection to %s: %s", self.address, e)
        if self._os_type is None:
            self._detected = self._query_os_type()
            logger.info("%s runs %s", self.address, self._detected.name)

    def _on_stop(self) -> None:
        self.executor.close()

    def _query_os_type(self) -> OSType:
        stdout = self.execute(UNAME_COMMAND)
        if stdout is None:
            return OSType.UNKNOWN
        name = stdout.strip().lower()
        os_type = _UNAME_TO_OS_TYPE.get(name)
        if os_type is None:
            logger.warning("%s reports an unsupported operating system %r", self.address, stdout.strip())
            return OSType.UNKNOWN
        return os_type

    def _detect_os_type(self) -> OSType:
        return self._detected or OSType.UNKNOWN

    def _read_file(self, path: str) -> bytes:
        command = f"cat -- {shlex.quote(path)}"
        r = self.executor.execute(command, timeout=self.timeout)
        if not r.succeeded:
            raise ExecutionError(command, f"failed with exit code {r.exit_code}: {(r.stderr or '').strip() or 'no stderr'}")
        return (r.stdout or "").encode("utf-8")
