"""Hint verification, randomized search and the parallel worker pool."""
