"""graphtune: live execution profiling for node-based visual programs."""

__version__ = "0.4.0"
