from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from tracker.services.query import (
    InvalidCursor,
    Pagination,
    QueryCriteria,
    list_companies,
    query_postings,
)

router = APIRouter()


class OpportunityModel(BaseModel):
    id: int
    company: str
    title: str
    location: Optional[str] = None
    applicationLink: Optional[str] = None
    source: str
    createdAt: str


class OpportunityPageModel(BaseModel):
    page: List[OpportunityModel]
    isDone: bool
    continueCursor: str


@router.get("/opportunities", response_model=OpportunityPageModel)
def opportunities(
    request: Request,
    search: Optional[str] = Query(None),
    source: Optional[str] = Query(None),
    company: Optional[List[str]] = Query(None),
    cursor: Optional[str] = Query(None),
    num_items: Optional[int] = Query(None, ge=1),
):
    con = request.app.state.db
    cfg = request.app.state.config

    size = min(num_items or cfg.default_page_size, cfg.max_page_size)

    try:
        page = query_postings(
            con,
            QueryCriteria(search=search, source=source, companies=company or []),
            Pagination(num_items=size, cursor=cursor or None),
        )
    except InvalidCursor as e:
        raise HTTPException(status_code=400, detail=str(e))

    return page.to_dict()


@router.get("/opportunities/companies")
def companies(request: Request) -> List[str]:
    return list_companies(request.app.state.db)
