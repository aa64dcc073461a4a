"""Application layer: services orchestrating the store, index manager and codec."""
