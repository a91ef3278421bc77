"""Deployment description loaded from an order document."""
