"""Mutable user session and its portable encoding."""
