"""View projections."""
