"""Stateful services built on top of the repositories."""
