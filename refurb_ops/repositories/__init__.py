"""Data-access layer: one repository per aggregate, built on BaseRepository."""
