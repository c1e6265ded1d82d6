class IngestionError(Exception):
    """Base exception for ingestion failures scoped to one source."""


class ContentFetchError(IngestionError):
    """Upstream file could not be fetched or decoded."""
