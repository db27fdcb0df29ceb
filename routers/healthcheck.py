"""
Health check endpoint.
"""

from fastapi import APIRouter, Depends
from pymongo.database import Database

from database import get_db
from responses import ok

router = APIRouter()


@router.get("")
def healthcheck(db: Database = Depends(get_db)):
    info = {
        "backend": "running",
        "database_connected": False,
        "collections": [],
    }
    try:
        db.command("ping")
        info["database_connected"] = True
        info["collections"] = db.list_collection_names()
    except Exception as e:
        info["error"] = str(e)
    return ok(info, "OK" if info["database_connected"] else "Database unreachable")
