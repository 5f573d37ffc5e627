"""Process-boundary I/O: configuration files and logging."""
