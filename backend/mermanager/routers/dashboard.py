from fastapi import APIRouter, Depends

from mermanager.inventory.dashboard import DashboardSummary, build_dashboard
from mermanager.routers.auth_router import get_current_user
from mermanager.store.base import DocumentStore
from mermanager.store.factory import get_store

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/", response_model=DashboardSummary)
def get_dashboard(user=Depends(get_current_user), store: DocumentStore = Depends(get_store)):
    return build_dashboard(store.query(user))
