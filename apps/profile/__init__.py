"""Profile app: user profiles and role management."""
