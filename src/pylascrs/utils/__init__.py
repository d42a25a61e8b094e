"""Helpers that sit outside the parsing core."""
