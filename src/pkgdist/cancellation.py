# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Cooperative cancellation for long archive batches."""

from __future__ import annotations

import threading


class CancellationToken:
    """Thread-safe flag checked by the builder between packages.

    Cancelling never interrupts a package mid-archive; the builder finishes the
    current package and stops before starting the next one.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""

        self._event.set()

    def is_cancelled(self) -> bool:
        """Return ``True`` once cancellation has been requested."""

        return self._event.is_set()


__all__ = ["CancellationToken"]
