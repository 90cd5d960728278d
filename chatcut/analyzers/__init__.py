"""Media analysis."""
