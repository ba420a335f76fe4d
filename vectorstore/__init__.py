"""Vector store module for the knowledge-base RAG pipeline.

Provides recursive separator chunking, OpenAI-compatible embedding
generation, and ChromaDB storage of article chunks with their metadata.
"""
