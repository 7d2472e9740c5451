"""The host this process runs on."""

from __future__ import annotations

from pathlib import Path

from ..address import LOCAL_ADDRESS
from ..ostype import OSType
from .base import DEFAULT_MAX_WORKERS, DEFAULT_TIMEOUT_SECONDS, OSSource
from .executor import LocalExecutor, NativeExecutor


class LocalOS(OSSource):
    """Runs commands as child processes and reads files from the local file system."""

    def __init__(
        self,
        *,
        os_type: OSType | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_workers: int = DEFAULT_MAX_WORKERS,
        executor: NativeExecutor | None = None,
    ) -> None:
        super().__init__(
            LOCAL_ADDRESS,
            executor or LocalExecutor(),
            os_type=os_type,
            timeout=timeout,
            max_workers=max_workers,
        )

    def _detect_os_type(self) -> OSType:
        return OSType.current()

    def _read_file(self, path: str) -> bytes:
        return Path(path).read_bytes()
