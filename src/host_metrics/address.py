"""Metric source addresses: ``local`` or ``ssh://user@host[:port]``."""

from __future__ import annotations

import getpass
from dataclasses import dataclass

from .errors import InvalidAddressError

LOCAL_TOKEN = "local"
SSH_SCHEME = "ssh"
DEFAULT_SSH_PORT = 22


@dataclass(frozen=True)
class Address:
    """Identifies a metric source. Two sources are equal iff their addresses are."""

    scheme: str
    host: str | None = None
    user: str | None = None
    port: int | None = None

    @property
    def is_local(self) -> bool:
        return self.scheme == LOCAL_TOKEN

    @classmethod
    def parse(cls, text: str) -> Address:
        """Parse ``local``, ``ssh://user@host:port`` or ``user@host:port``.

        The user defaults to the current login and the port to 22.
        """
        raw = text.strip()
        if not raw:
            raise InvalidAddressError(text, "empty address")
        if raw == LOCAL_TOKEN:
            return LOCAL_ADDRESS

        rest = raw
        if "://" in raw:
            scheme, _, rest = raw.partition("://")
            if scheme != SSH_SCHEME:
                raise InvalidAddressError(text, f"unsupported scheme {scheme!r}")

        user = None
        if "@" in rest:
            user, _, rest = rest.rpartition("@")
            if not user:
                raise InvalidAddressError(text, "empty user")

        host, sep, port_text = rest.partition(":")
        if not host or "/" in host:
            raise InvalidAddressError(text, "missing or malformed host")
        port = DEFAULT_SSH_PORT
        if sep:
            if not port_text.isdigit():
                raise InvalidAddressError(text, f"invalid port {port_text!r}")
            port = int(port_text)
            if not 0 < port < 65536:
                raise InvalidAddressError(text, f"port {port} out of range")

        if user is None:
            try:
                user = getpass.getuser()
            except (OSError, KeyError) as e:
                raise InvalidAddressError(text, "no user given and the current login is unknown") from e

        return cls(scheme=SSH_SCHEME, host=host, user=user, port=port)

    def __str__(self) -> str:
        if self.is_local:
            return LOCAL_TOKEN
        return f"{self.scheme}://{self.user}@{self.host}:{self.port}"


LOCAL_ADDRESS = Address(scheme=LOCAL_TOKEN)
