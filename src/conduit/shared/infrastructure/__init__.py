"""Shared infrastructure: configuration, logging, process execution."""
