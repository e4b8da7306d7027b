"""Spooky Hunt test suite."""
