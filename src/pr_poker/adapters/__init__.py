"""Adapters for GitHub, message rendering and Slack."""
