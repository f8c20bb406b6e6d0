"""
SecureChat demo client.

A terminal chat that simulates several users on top of a shared local
key-value store. Message "encryption" and password "hashing" are base64
placeholders for demonstration only.
"""

__version__ = "0.1.0"
