"""Display-only rendering of parsed commands (never used to build argv)."""
