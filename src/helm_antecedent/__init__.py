"""Verify and claim ownership of Helm release resources."""
