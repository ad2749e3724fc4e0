"""schemabridge - bidirectional converter between relational schemas and annotated Python models."""

__version__ = "0.3.0"
