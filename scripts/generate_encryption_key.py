#!/usr/bin/env python
"""Print a new Fernet key for the ENCRYPTION_KEY environment variable."""

from openwrite.security.encryption import generate_encryption_key

key = generate_encryption_key()
print("\nAdd this to your .env file:")
print(f"ENCRYPTION_KEY={key}")
print("\nKeep it secret. Changing it makes stored AI provider keys unreadable.")
