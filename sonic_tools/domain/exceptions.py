"""
Defines custom exception types for the Sonic Tools service.

Every failure an operation can run into is expressed as one of these types, so
the host can turn any of them into a single failed outcome for the whole batch
while still telling a bad request apart from a broken engine run.

All custom exceptions inherit from the base `SonicToolsException`.
"""
from typing import List, Optional


class SonicToolsException(Exception):
    """Base class for all custom exceptions in the Sonic Tools service."""

    pass


# --- Request Validation ---
class UnsupportedFormatException(SonicToolsException):
    """
    Raised when a requested audio format cannot be mapped to an encode plan.

    There is no silent fallback to a default container: a typo in the format
    name must reach the caller instead of producing a file in the wrong format.
    """

    pass


class InvalidArgumentException(SonicToolsException):
    """
    Raised when request parameters are inconsistent or incomplete.

    Examples are a trim range whose start is not before its end, a merge
    request without input files, or a conversion without an output format.
    """

    pass


class UnsupportedMetadataTargetException(SonicToolsException):
    """
    Raised when tags are requested for a container that cannot carry them.

    Raw ADTS AAC streams have no place for tags or cover art. The check runs
    before the engine is started.
    """

    pass


# --- Scratch Files ---
class ScratchIOException(SonicToolsException):
    """Raised when a scratch file cannot be created, written, or read back."""

    pass


# --- External Engine ---
class EngineExecutionException(SonicToolsException):
    """
    Raised when the external media engine fails to start or exits with an error.

    The captured stderr of the engine is kept on the exception and included in
    its message, since it is usually the only clue to what went wrong.

    Attributes:
        stderr (str): Diagnostic output captured from the engine.
        returncode (Optional[int]): Exit status, or None if the process never ran
                                    to completion (spawn failure, timeout).
        command (List[str]): The argument list that was executed.
    """

    def __init__(
        self,
        message: str,
        stderr: str = "",
        returncode: Optional[int] = None,
        command: Optional[List[str]] = None,
    ):
        self.message = message
        self.stderr = stderr or ""
        self.returncode = returncode
        self.command = list(command or [])
        details = f"{message}: {self.stderr.strip()}" if self.stderr.strip() else message
        super().__init__(details)


class ProbeParseException(SonicToolsException):
    """
    Raised when the probe output does not contain a usable numeric value.

    ffprobe reports "N/A" for properties it cannot determine, for instance the
    bit rate of some raw streams. Such values cannot drive bitrate arithmetic.
    """

    pass
