"""Unit testing helpers."""
