"""RAG (Retrieval-Augmented Generation) pipeline components.

This package contains modules for:
- PDF text extraction
- Page-level document storage
- Model-ranked relevance selection
- Grounded answer synthesis with page citations
"""
