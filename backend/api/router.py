from __future__ import annotations

from fastapi import APIRouter, Depends

from api.deps import TIMETABLE_READ, require_capability
from api.routes import classes, subjects, teachers, timetables


api_router = APIRouter()

# Every route needs a valid token; write routes check their own capability.
_readers = [Depends(require_capability(TIMETABLE_READ))]
api_router.include_router(subjects.router, prefix="/subjects", tags=["subjects"], dependencies=_readers)
api_router.include_router(teachers.router, prefix="/teachers", tags=["teachers"], dependencies=_readers)
api_router.include_router(classes.router, prefix="/classes", tags=["classes"], dependencies=_readers)
api_router.include_router(timetables.router, prefix="/timetables", tags=["timetables"], dependencies=_readers)
