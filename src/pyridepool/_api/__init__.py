"""Endpoint modules for the profile REST API and the Hosted UI."""
