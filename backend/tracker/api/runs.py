import json

from fastapi import APIRouter, Query, Request

router = APIRouter()


@router.get("/runs")
def runs(request: Request, limit: int = Query(50, ge=1, le=200)):
    con = request.app.state.db
    rows = con.execute(
        """
        SELECT run_id, trigger, started_at, finished_at, stats_json
        FROM runs
        ORDER BY started_at DESC
        LIMIT ?
        """,
        (limit,),
    ).fetchall()

    out = []
    for r in rows:
        item = dict(r)
        item["stats"] = json.loads(item.pop("stats_json") or "{}")
        out.append(item)
    return out
