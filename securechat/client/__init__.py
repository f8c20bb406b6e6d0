"""
Client-side modules for SecureChat.

This package contains:
- Session state (register, login, send, load, logout, auto-logout)
- Background message polling
- The terminal front end
"""
