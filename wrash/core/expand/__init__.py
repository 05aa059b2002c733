"""Expansion engine.

Resolves variable references against a caller supplied lookup and unquoted
glob words against the working directory.
"""
