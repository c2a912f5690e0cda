"""Command-line entry point, parsing and mode selection for nodeboot."""
