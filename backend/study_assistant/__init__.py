"""Study assistant: page chunking and keyword retrieval for document study tools."""

__version__ = "1.0.0"
