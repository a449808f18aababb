"""JSON API for submitting and reviewing name changes."""

import logging
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from hstrack.admin_auth import AdminAuthorizer, PasswordAuthorizer
from hstrack.db.session import get_db
from hstrack.efficiency import EfficiencyCalculator, NullEfficiency
from hstrack.errors import HstrackError
from hstrack.hiscores import HiscoresClient, HttpHiscoresClient
from hstrack.names.details import NameChangeReporter
from hstrack.names.service import NameChangeService

logger = logging.getLogger(__name__)

app = FastAPI(title="hstrack")


class SubmitNameChangeBody(BaseModel):
    old_name: str = Field(..., max_length=20)
    new_name: str = Field(..., max_length=20)


class ResolveNameChangeBody(BaseModel):
    admin_password: Optional[str] = None


@app.exception_handler(HstrackError)
async def service_error_handler(request: Request, exc: HstrackError):
    """Answer service errors with their status code and message."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


# =============================================================================
# Dependencies (overridden in tests)
# =============================================================================

def get_authorizer(db: Session = Depends(get_db)) -> AdminAuthorizer:
    return PasswordAuthorizer(db)


def get_hiscores_client() -> HiscoresClient:
    return HttpHiscoresClient()


def get_efficiency() -> EfficiencyCalculator:
    return NullEfficiency()


# =============================================================================
# Routes
# =============================================================================

@app.post("/api/names", status_code=201)
def submit_name_change(body: SubmitNameChangeBody, db: Session = Depends(get_db)):
    name_change = NameChangeService(db).submit(body.old_name, body.new_name)
    return name_change.to_dict()


@app.get("/api/names/{name_change_id}")
def name_change_details(
    name_change_id: int,
    db: Session = Depends(get_db),
    hiscores: HiscoresClient = Depends(get_hiscores_client),
    efficiency: EfficiencyCalculator = Depends(get_efficiency),
):
    details = NameChangeReporter(db, hiscores, efficiency).describe(name_change_id)
    return details.to_dict()


@app.post("/api/names/{name_change_id}/approve")
def approve_name_change(
    name_change_id: int,
    body: ResolveNameChangeBody,
    db: Session = Depends(get_db),
    authorizer: AdminAuthorizer = Depends(get_authorizer),
):
    name_change = NameChangeService(db, authorizer).approve(name_change_id, body.admin_password)
    return name_change.to_dict()


@app.post("/api/names/{name_change_id}/deny")
def deny_name_change(
    name_change_id: int,
    body: ResolveNameChangeBody,
    db: Session = Depends(get_db),
    authorizer: AdminAuthorizer = Depends(get_authorizer),
):
    name_change = NameChangeService(db, authorizer).deny(name_change_id, body.admin_password)
    return name_change.to_dict()


# Only for debugging
if __name__ == "__main__":
    import uvicorn

    from hstrack.config import settings

    uvicorn.run("hstrack.web.main:app", host=settings.api_host, port=settings.api_port, reload=True)
