"""gitme - a terminal dashboard for the pull requests that need you."""

__version__ = "0.1.0"
