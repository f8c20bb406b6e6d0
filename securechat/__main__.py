"""
Client entry point, delegates to securechat.client.client module.

Run with:
    python -m securechat
"""

from securechat.client.client import main

if __name__ == "__main__":
    main()
