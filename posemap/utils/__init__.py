"""Helper functions and constants used throughout posemap."""
