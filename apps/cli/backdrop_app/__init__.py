"""Backdrop command-line app."""
