"""Database layer for abacgate."""
