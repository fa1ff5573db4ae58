"""
Custom column types.

EmbeddingVector stores a float vector as a pgvector text literal
("[0.1,0.2,...]"). The SQL similarity function casts the column to
`vector`; SQLite development databases read it back as a Python list.

Dependencies: sqlalchemy
System role: Portable embedding storage
"""

import json

from sqlalchemy import Text
from sqlalchemy.types import TypeDecorator


class EmbeddingVector(TypeDecorator):
    """Fixed-dimension float vector persisted as its text literal."""

    impl = Text
    cache_ok = True

    def __init__(self, dimension: int | None = None) -> None:
        super().__init__()
        self.dimension = dimension

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        vector = [float(v) for v in value]
        if self.dimension is not None and len(vector) != self.dimension:
            raise ValueError(
                f"Embedding has {len(vector)} dimensions, column expects {self.dimension}"
            )
        return json.dumps(vector, separators=(",", ":"))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return [float(v) for v in json.loads(value)]
