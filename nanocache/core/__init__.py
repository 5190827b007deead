"""Core Application Layer: the cache store and its get-or-compute protocol.

Connects the domain layer with the infrastructure layer (record table,
persistence codec, payload codec) through interfaces.
"""
