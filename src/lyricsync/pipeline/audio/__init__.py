"""Audio subsystem facade."""

from ...core.components.audio import (
    DemucsSeparator,
    PassthroughSeparator,
    SeparatedStems,
    SeparationProvider,
    default_separator,
    probe_duration,
)

__all__ = [
    "DemucsSeparator",
    "PassthroughSeparator",
    "SeparatedStems",
    "SeparationProvider",
    "default_separator",
    "probe_duration",
]
