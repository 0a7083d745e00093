"""Custom exceptions for LyricSync."""


class LyricSyncError(Exception):
    """Base exception for LyricSync."""
    pass


class ConfigError(LyricSyncError):
    """Invalid configuration value."""
    pass


class ValidationError(LyricSyncError):
    """Invalid input parameters."""
    pass


class ProviderUnavailableError(LyricSyncError):
    """A provider is not configured or not supported on this machine."""
    pass


class ProviderError(LyricSyncError):
    """A provider call failed (network, quota or format error)."""
    pass


class SeparationError(ProviderError):
    """Error separating audio stems."""
    pass


class TranscriptionError(ProviderError):
    """Error transcribing vocals."""
    pass


class RecallError(ProviderError):
    """Error recalling known lyrics for a song."""
    pass


class PolishError(ProviderError):
    """Error polishing transcribed lyrics."""
    pass


class AlignmentError(LyricSyncError):
    """Alignment input cannot produce any timing."""
    pass


class PolishIntegrityError(LyricSyncError):
    """Polished lyrics changed the number of timed words."""
    pass


class StaleRunError(LyricSyncError):
    """A pipeline run was superseded by a reset or a newer run."""
    pass
