"""
Boundary layer for external system integrations.

Relational store (db), object storage (storage) and vector similarity
search (vdb) adapters.
"""
