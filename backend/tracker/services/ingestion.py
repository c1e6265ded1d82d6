import json
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import requests

from tracker.core.config import IngestionConfig, SourceConfig
from tracker.services.dedupe import SqlitePostingState
from tracker.services.errors import IngestionError
from tracker.services.extractors import get_extractor
from tracker.services.fetchers.github_content import GitHubContentClient
from tracker.services.models import Posting, now_utc, to_iso

logger = logging.getLogger("ingestion")


def _source_result(src: SourceConfig) -> Dict[str, Any]:
    return {
        "owner": src.owner,
        "repo": src.repo,
        "path": src.path,
        "source": src.source,
        "kind": src.kind.value,
        "content": None,
        "metadata": None,
        "parsed": {"total": 0, "postings": []},
        "inserted": 0,
        "error": None,
    }


class IngestionService:
    """
    One scheduled ingestion run: for each configured source,
    fetch -> extract -> dedupe + insert. A failing source never blocks the others.
    """

    def __init__(
        self,
        con,
        config: Optional[IngestionConfig] = None,
        fetcher=None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.con = con
        self.config = config or IngestionConfig()
        self.fetcher = fetcher or GitHubContentClient(
            token=self.config.github_token,
            timeout=self.config.http_timeout_s,
        )
        self.clock = clock or now_utc
        self.state = SqlitePostingState(con)

    def ingest_source(self, src: SourceConfig) -> Dict[str, Any]:
        result = _source_result(src)
        label = f"{src.owner}/{src.repo}"

        try:
            fetched = self.fetcher.fetch(src)
        except (IngestionError, requests.RequestException) as e:
            logger.warning("[ingest][%s] fetch failed err=%s", label, e)
            result["error"] = f"fetch: {e}"
            return result

        result["content"] = fetched.content
        result["metadata"] = fetched.metadata

        extractor = get_extractor(src.kind, retention_days=self.config.retention_days)
        rows = extractor.extract(fetched.content, now=self.clock())
        result["parsed"] = {
            "total": len(rows),
            "postings": [r.to_dict() for r in rows],
        }

        # the whole batch is extracted before anything is written
        candidates: List[Posting] = [Posting.from_raw(r, src.source) for r in rows]
        inserted = self.state.insert_new(candidates, src.source)
        result["inserted"] = len(inserted)

        logger.info(
            "[ingest][%s] parsed=%s inserted=%s skipped=%s",
            label,
            len(rows),
            len(inserted),
            len(rows) - len(inserted),
        )
        return result

    def run_once(self, trigger: str = "manual") -> Dict[str, Any]:
        run_id = str(uuid.uuid4())
        started = to_iso(self.clock())
        logger.info("[ingest] run %s started trigger=%s sources=%s", run_id, trigger, len(self.config.sources))

        results: List[Dict[str, Any]] = []
        for src in self.config.sources:
            try:
                results.append(self.ingest_source(src))
            except Exception as e:
                # parser or storage blew up; keep going with the next source
                logger.exception("[ingest][%s/%s] failed", src.owner, src.repo)
                self.con.rollback()
                failed = _source_result(src)
                failed["error"] = f"{type(e).__name__}: {e}"
                results.append(failed)

        finished = to_iso(self.clock())

        parsed = sum(r["parsed"]["total"] for r in results)
        inserted = sum(r["inserted"] for r in results)
        stats = {
            "parsed": parsed,
            "inserted": inserted,
            "skipped_duplicates": parsed - inserted,
            "source_errors": {f"{r['owner']}/{r['repo']}": r["error"] for r in results if r["error"]},
        }

        self.con.execute(
            "INSERT INTO runs(run_id, trigger, started_at, finished_at, stats_json) VALUES(?,?,?,?,?)",
            (run_id, trigger, started, finished, json.dumps(stats)),
        )
        self.con.commit()

        logger.info("[ingest] run %s finished stats=%s", run_id, stats)

        return {
            "run_id": run_id,
            "trigger": trigger,
            "started_at": started,
            "finished_at": finished,
            "results": results,
            "stats": stats,
        }
