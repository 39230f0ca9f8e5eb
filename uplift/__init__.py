"""uplift — two-phase schema and system update orchestration."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("uplift")
except PackageNotFoundError:
    __version__ = "0.1.0"  # fallback for development
