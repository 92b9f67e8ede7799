"""Block URLs and suspend applications while no customer interaction is open."""

__version__ = "1.0.2"