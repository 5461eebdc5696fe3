"""
Custom exceptions for the kuma-imagemin library.
"""

class KumaImageminError(Exception):
    """Base class for all kuma-imagemin specific errors."""
    pass

class LedgerError(KumaImageminError):
    """Base class for errors related to the compression ledger."""
    pass

class LedgerCorruptError(LedgerError):
    """
    Raised when the persisted ledger document cannot be read or does not
    match the expected schema. Prior accounting would be lost if the run
    continued, so callers must treat this as fatal.
    """

    def __init__(self, path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Ledger at '{path}' is corrupt: {reason}")

class CodecError(KumaImageminError):
    """Base class for errors related to image codecs."""
    pass

class CodecUnavailableError(CodecError):
    """Raised when an external encoder binary cannot be located."""
    pass

class ConfigurationError(KumaImageminError):
    """Raised for general configuration issues."""
    pass
