from schemas.article import Article
from schemas.chunk import (
    Chunk,
    InsertResult,
    QueryOutcome,
    QueryResult,
)
