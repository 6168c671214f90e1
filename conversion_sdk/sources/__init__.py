"""Conversion sources: read a table format's log and expose state and changes."""
