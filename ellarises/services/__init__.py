"""Domain services: credentials, sessions, list queries and persistence helpers."""
