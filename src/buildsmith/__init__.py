"""Generate, statically score and sandbox-build AI-authored web projects."""

__version__ = "0.1.0"
