"""Core configuration and error types for Forum Stage."""
