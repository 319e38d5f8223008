"""Slot table, dispatch and reply translation."""
