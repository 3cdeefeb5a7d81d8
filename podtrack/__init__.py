"""PodTrack - multi-track podcast recording and post-processing."""

__version__ = "0.1.0"
