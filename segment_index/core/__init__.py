"""Domain-level helpers shared by every layer: exceptions and text fingerprints."""
