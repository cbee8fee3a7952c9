"""Enumeration backend interfaces."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from cfhdb.core.model import PciRecord, UsbRecord


class Enumerator(Protocol):
    def enumerate(self) -> Sequence[PciRecord | UsbRecord]:
        """Return one raw record per device currently present on the bus."""
