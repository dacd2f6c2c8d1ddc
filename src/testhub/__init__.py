"""TestHub scan pipeline: collects Java test annotation metadata across git repositories."""

__version__ = "0.1.0"
