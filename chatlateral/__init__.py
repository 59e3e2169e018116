"""chatlateral: embeddable chat widget core and echo-broadcast relay."""

__version__ = "0.1.0"
