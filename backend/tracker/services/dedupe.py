from __future__ import annotations

import logging
from typing import Iterable, List, Set, Tuple

from tracker.db.repo_postings import existing_keys, insert_postings
from tracker.services.models import Posting

logger = logging.getLogger("dedupe")

PostingKey = Tuple[str, str]


def filter_new(candidates: Iterable[Posting], existing: Set[PostingKey]) -> List[Posting]:
    """
    Keeps candidates whose exact (company, title) is neither in `existing`
    nor already taken by an earlier candidate of the same batch.
    """
    seen = set(existing)
    fresh: List[Posting] = []
    for p in candidates:
        if p.key in seen:
            continue
        seen.add(p.key)
        fresh.append(p)
    return fresh


class SqlitePostingState:
    def __init__(self, con):
        self.con = con

    def insert_new(self, postings: List[Posting], source: str) -> List[Posting]:
        """
        Dedup gate + bulk insert for one source batch.

        The corpus snapshot is taken once, before any row of this batch is
        written. Returns the postings that were actually inserted.
        """
        tagged = [
            Posting(
                company=p.company,
                title=p.title,
                location=p.location,
                application_link=p.application_link,
                source=source,
                created_at=p.created_at,
            )
            for p in postings
        ]

        snapshot = existing_keys(self.con, [p.key for p in tagged])
        fresh = filter_new(tagged, snapshot)

        inserted = insert_postings(self.con, fresh)
        self.con.commit()

        logger.info(
            "[dedupe] source=%s candidates=%s existing=%s inserted=%s",
            source,
            len(tagged),
            len(snapshot),
            len(inserted),
        )
        return inserted
