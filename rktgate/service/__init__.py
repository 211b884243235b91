"""rkt integration services."""
