"""Name registry — the identity layer shared by every catalog.

The registry provides:
- Binding: one display name per address, set exactly once
- Uniqueness: names compared case-insensitively
- Lookup: address -> name and name -> address
- Discovery: the catalog address provisioned for each creator
"""
