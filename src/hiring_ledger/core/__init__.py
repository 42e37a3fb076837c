"""Event bus and notification types."""
