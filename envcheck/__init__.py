"""envcheck — registered environment checks behind an access-gated endpoint."""

__version__ = "0.1.0"
