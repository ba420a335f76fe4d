"""Retrieval-augmented question answering over the stored article chunks."""
