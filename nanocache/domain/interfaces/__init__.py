"""Domain Interfaces (Ports):

Defines the contracts (Abstract Base Classes) that infrastructure components
must implement. The cache store and the command line depend on these
interfaces, not on concrete implementations.
"""
