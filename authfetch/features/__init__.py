"""Feature modules for authfetch."""
