"""Data Playground - user-defined data collections with sharing.

A REST API for creating typed tabular collections, filling them with
entries, and sharing them with other users at read, write or admin level.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
