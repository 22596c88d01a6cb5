"""Filter, sort and pagination engine."""
