"""Terminal front end and command-line entry point."""
