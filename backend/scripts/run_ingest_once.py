import json
import logging
import os

from tracker.core.config import SourceKind, get_runtime_config, ingestion_config_from
from tracker.db.conn import connect
from tracker.db.schema import init_db
from tracker.services.extractors import get_extractor
from tracker.services.ingestion import IngestionService

# Dry run: parse a local README instead of hitting GitHub + the DB
README_PATH = os.environ.get("README_PATH")
SOURCE_KIND = os.environ.get("SOURCE_KIND", "vansh")


def parse_local_file(path: str, kind: str) -> None:
    with open(path, "r", encoding="utf-8") as f:
        raw = f.read()

    cfg = get_runtime_config()
    rows = get_extractor(SourceKind(kind), retention_days=cfg.retention_days).extract(raw)
    for r in rows:
        print(json.dumps(r.to_dict(), ensure_ascii=False))
    print(f"Done. kind={kind} accepted={len(rows)}")


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if README_PATH:
        parse_local_file(README_PATH, SOURCE_KIND)
        return

    cfg = get_runtime_config()
    init_db(cfg.db_path)
    con = connect(cfg.db_path)
    try:
        result = IngestionService(con, ingestion_config_from(cfg)).run_once(trigger="script")
    finally:
        con.close()

    for r in result["results"]:
        print(f"{r['owner']}/{r['repo']}: parsed={r['parsed']['total']} inserted={r['inserted']} error={r['error']}")
    print(f"Done. run_id={result['run_id']} stats={json.dumps(result['stats'])}")


if __name__ == "__main__":
    main()
