"""Session runtime and the command-line entry point."""
