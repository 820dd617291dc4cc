# src/swip_api/api/v1/endpoints/apps.py
"""App registration for developers."""

from fastapi import APIRouter, Depends, status
from sqlalchemy import select

from swip_api.api.v1.dependencies import CurrentUserDep, SessionDep, rate_limited
from swip_api.models import App
from swip_api.schemas.app import AppCreate, AppResponse

router = APIRouter(prefix="/apps", tags=["apps"])


@router.post(
    "/",
    status_code=status.HTTP_201_CREATED,
    response_model=AppResponse,
    dependencies=[Depends(rate_limited("apps:create"))],
)
async def create_app(
    app_data: AppCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> App:
    """Register a new app owned by the caller."""
    app = App(name=app_data.name, category=app_data.category, owner_id=current_user.id)
    db.add(app)
    db.commit()
    db.refresh(app)
    return app


@router.get("/", response_model=list[AppResponse])
async def list_apps(current_user: CurrentUserDep, db: SessionDep) -> list[App]:
    """List the caller's apps."""
    stmt = select(App).where(App.owner_id == current_user.id).order_by(App.created_at, App.id)
    return list(db.execute(stmt).scalars())
