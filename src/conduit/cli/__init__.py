"""Conduit command-line interface."""
