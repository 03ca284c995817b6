"""Forward controller lifecycle events to notification providers."""
