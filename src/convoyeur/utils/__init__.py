"""Utility modules for Convoyeur."""
