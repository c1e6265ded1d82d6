from __future__ import annotations

from typing import Dict, Type

from tracker.core.config import SourceKind
from tracker.services.dates import DEFAULT_RETENTION_DAYS
from tracker.services.extractors.base import TableExtractor
from tracker.services.extractors.simplify import SimplifyExtractor
from tracker.services.extractors.vansh import VanshExtractor

EXTRACTORS: Dict[SourceKind, Type[TableExtractor]] = {
    SourceKind.VANSH: VanshExtractor,
    SourceKind.SIMPLIFY: SimplifyExtractor,
}


def get_extractor(kind: SourceKind, retention_days: int = DEFAULT_RETENTION_DAYS) -> TableExtractor:
    cls = EXTRACTORS.get(SourceKind(kind))
    if cls is None:
        raise KeyError(f"No extractor registered for kind {kind!r}")
    return cls(retention_days=retention_days)
