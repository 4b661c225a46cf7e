#!/usr/bin/env python3
"""agemu.errors

Exception taxonomy for the emulator.

- ConfigurationError → bad or contradictory caller input (climate source, year)
- DomainError        → resolved pixel is not a land growing-season location
- InvalidInput       → malformed internal data (counts, lengths, empty series)
- FetchError         → a parameter or reference table could not be retrieved

Nothing inside the pipeline recovers from these; the CLIs turn them into
SystemExit with the message.
"""

from __future__ import annotations


class EmulatorError(Exception):
    """Base class for all agemu failures."""


class ConfigurationError(EmulatorError):
    pass


class DomainError(EmulatorError):
    pass


class InvalidInput(EmulatorError, ValueError):
    pass


class FetchError(EmulatorError):
    """Raised when a remote or cached table can't be loaded. Never retried."""
