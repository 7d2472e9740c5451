"""Build a metric source from configuration."""

from __future__ import annotations

import logging

from ..address import Address
from ..config import SourceConfig
from ..ostype import OSType
from .base import OSSource
from .local import LocalOS
from .remote import RemoteOS

logger = logging.getLogger(__name__)


def create_source(config: SourceConfig) -> OSSource:
    """Return a LocalOS or RemoteOS for *config*. The source is not started."""
    address = Address.parse(config.address)
    os_type = OSType.from_name(config.os_type) if config.os_type else None

    if address.is_local:
        source: OSSource = LocalOS(
            os_type=os_type,
            timeout=config.timeout_seconds,
            max_workers=config.max_workers,
        )
    else:
        source = RemoteOS(
            address,
            ssh_options=config.ssh_options,
            os_type=os_type,
            timeout=config.timeout_seconds,
            max_workers=config.max_workers,
        )
    logger.debug("created %r", source)
    return source
