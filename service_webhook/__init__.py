"""Event Grid webhook receiver service."""
