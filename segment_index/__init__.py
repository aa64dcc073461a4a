"""
Segment store and semantic retrieval engine.

Stores deduplicated document segments with fixed-dimension embeddings and
answers filtered cosine-similarity queries through a clustered index that
falls back to an exact scan.

Usage:
    from segment_index import SegmentEngine

    engine = SegmentEngine.from_settings()
    await engine.create_schema()
    segment_id = await engine.create_segment(parent_id, "text")
"""

from segment_index.engine import SegmentEngine

__all__ = ["SegmentEngine"]

__version__ = "0.1.0"
