"""Environment-specific configuration classes."""
