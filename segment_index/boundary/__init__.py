"""Boundary layer: relational segment storage (db) and vector indexing (vdb)."""
