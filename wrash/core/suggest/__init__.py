"""Completion suggestions driven by a per-command YAML tree."""
