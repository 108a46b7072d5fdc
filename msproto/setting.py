"""Per-message setting bits."""

from __future__ import annotations

import enum


class Setting(enum.IntFlag):
    """Flags in the setting byte of send, recv and sub packets."""

    UNKNOWN = 0
    RECEIPT_ENABLED = 1 << 7
    SIGNAL = 1 << 5
    NO_ENCRYPT = 1 << 4
    TOPIC = 1 << 3
    STREAM = 1 << 1

    def is_set(self, flag: int) -> bool:
        """Whether any bit of ``flag`` is set."""
        return int(self) & int(flag) != 0

    def with_flag(self, flag: int) -> Setting:
        """Return a copy with the bits of ``flag`` set."""
        return Setting((int(self) | int(flag)) & 0xFF)

    def without_flag(self, flag: int) -> Setting:
        """Return a copy with the bits of ``flag`` cleared."""
        return Setting(int(self) & ~int(flag) & 0xFF)