"""
Placeholder "security" helpers for the SecureChat demo.

Nothing in this package is cryptography; see placeholder.py.
"""
