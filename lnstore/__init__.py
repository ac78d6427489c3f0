"""
lnstore - persistence layer for a Lightning/RGB payment node

Stores:
- The sealed wallet seed (mnemonic)
- Channel peer addresses
- Temporary -> final channel id mappings
- Revoked token identifiers
- Key/value node configuration, mirrored to files for the protocol engine
"""

__version__ = "0.1.0"
