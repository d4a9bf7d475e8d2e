"""Admin app: dashboard statistics and user management."""
