"""Executable entry points for the carbon estimation component."""
