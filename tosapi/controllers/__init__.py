"""Request handling for the user-response and status endpoints."""
