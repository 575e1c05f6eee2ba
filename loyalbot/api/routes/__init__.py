"""Route modules mounted by the app factory."""
