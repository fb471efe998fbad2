"""On-disk storage for share artifacts."""
