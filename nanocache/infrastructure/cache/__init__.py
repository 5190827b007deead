"""Cache Engine Implementation.

Provides the in-memory record table with expiry rules, the payload codec
and the whole-table persistence codec with its checksum envelope.
Bounded Context: Cache Management
"""
