"""
Shared Kernel

Building blocks used by every app: the domain base classes and errors,
the unit of work with its message bus, and the REST error translation.
"""
