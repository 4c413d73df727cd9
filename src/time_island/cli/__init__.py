"""time-island command line interface (``time-island``)."""

from time_island.cli.app import app

__all__ = ["app"]
