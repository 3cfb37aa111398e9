"""abacgate: role and attribute based access control for JSON APIs."""

__version__ = "0.1.0"
