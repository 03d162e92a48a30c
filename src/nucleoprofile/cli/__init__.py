"""nucleoprofile CLI — command-line entry points."""
