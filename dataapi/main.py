from __future__ import annotations
from dotenv import load_dotenv

load_dotenv()

import os, logging

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from typing import Optional

from .registry import Registry, EntityTarget
from .database import QueryServiceError, _run_query
from .query import build_query
from .results import SchemaMismatchError, convert_response

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("dataapi.api")

app = FastAPI(title="Tabular Data API", version="1.0.0")

origins_raw = os.getenv("CORS_ALLOW_ORIGINS", "")
origins = [o.strip() for o in origins_raw.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)

REG = Registry()


class QueryIn(BaseModel):
    entity_name: str = Field(..., alias="entityName", min_length=1)
    filter: Optional[str] = None
    order_by: Optional[str] = Field(None, alias="orderBy")
    page_size: Optional[str] = Field(None, alias="pageSize")
    page_token: Optional[str] = Field(None, alias="pageToken")


def _build_for(
    target: EntityTarget,
    filter: Optional[str],
    order_by: Optional[str],
    page_size: Optional[str],
    page_token: Optional[str],
) -> str:
    sql = build_query(
        raw_query=target.query,
        table=target.table,
        filter=filter,
        order_by=order_by,
        page_size=page_size,
        page_token=page_token,
    )
    log.info("query for %s: %s", target.entity, sql)
    return sql


@app.on_event("startup")
def _startup():
    REG.load_views()


@app.get("/healthz")
def health():
    return {
        "ok": True,
        "entities": list(REG.entities_cfg.keys()),
    }


@app.get("/entities")
def list_entities():
    out = []
    for name, meta in REG.entities_cfg.items():
        target = REG.resolve(name)
        item = {
            "entity": name,
            "mode": target.mode,
            "target": target.query or target.table,
        }
        if "description" in meta:
            item["description"] = meta["description"]
        if "maxResults" in meta:
            item["maxResults"] = meta["maxResults"]
        out.append(item)
    return {"entities": out}


@app.post("/sql")
def sql(body: QueryIn):
    try:
        target = REG.resolve(body.entity_name)
        return {
            "sql": _build_for(target, body.filter, body.order_by, body.page_size, body.page_token),
            "entity": body.entity_name,
            "mode": target.mode,
        }
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/data/{entity_name}")
def data(
    entity_name: str,
    filter: Optional[str] = None,
    order_by: Optional[str] = Query(None, alias="orderBy"),
    page_size: Optional[str] = Query(None, alias="pageSize"),
    page_token: Optional[str] = Query(None, alias="pageToken"),
):
    """
    Run the entity's query for one page and return its rows under the
    entity name together with `next_page_token`.
    """
    try:
        target = REG.resolve(entity_name)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))

    try:
        query = _build_for(target, filter, order_by, page_size, page_token)
        reply = _run_query(query, max_results=target.max_results)
        return convert_response(reply, entity_name, page_token)
    except QueryServiceError as e:
        status = 502 if e.upstream and e.status_code >= 500 else e.status_code
        raise HTTPException(status_code=status, detail=e.detail)
    except SchemaMismatchError as e:
        log.error("result for %s does not match its schema: %s", entity_name, e)
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/reload")
def reload_registry():
    try:
        summary = REG.refresh_all()
        return {"reloaded": summary}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
