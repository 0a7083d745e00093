"""LyricSync: time-synchronized karaoke lyrics from uploaded songs."""

__version__ = "0.1.0"
