"""ragbox — retrieval-augmented question answering over SQLite FTS5."""
