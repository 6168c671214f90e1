"""Conversion SDK: incremental change extraction from lakehouse table logs."""
