"""krill: a terminal gopher client."""

__version__ = "0.4.0"
