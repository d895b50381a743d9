"""Helpers shared by the API and CLI: payload validation and terminal output."""
