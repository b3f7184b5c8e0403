"""Integrations with external services: Google OAuth and Cloud Datastore."""
