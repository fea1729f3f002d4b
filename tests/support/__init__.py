"""Reusable test doubles for the tracker core."""
