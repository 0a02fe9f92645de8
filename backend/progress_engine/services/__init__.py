"""Service layer for the progress engine."""
