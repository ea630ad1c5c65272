"""Gitflow enforcer: gated merges and task status rules over a shared state document."""

__version__ = "0.1.0"
