"""Core install pipeline."""
