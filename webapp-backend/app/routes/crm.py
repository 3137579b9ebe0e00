from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from app.auth import require_session
from app.dependencies import get_store
from app.models import ClientIn, CreatedResponse, TaskIn
from app.store import UserStore

# Every route here sits behind the session guard.
router = APIRouter(tags=["crm"], dependencies=[Depends(require_session)])


@router.get("/crm/clients")
def list_clients(store: UserStore = Depends(get_store)) -> List[Dict[str, Any]]:
    return store.list_clients(limit=100)


@router.post("/crm/clients", response_model=CreatedResponse)
def create_client(payload: ClientIn, store: UserStore = Depends(get_store)) -> CreatedResponse:
    return CreatedResponse(id=store.add_client(**payload.model_dump()))


@router.get("/tasks")
def list_tasks(store: UserStore = Depends(get_store)) -> List[Dict[str, Any]]:
    return store.list_tasks(limit=200)


@router.post("/tasks", response_model=CreatedResponse)
def create_task(payload: TaskIn, store: UserStore = Depends(get_store)) -> CreatedResponse:
    return CreatedResponse(id=store.add_task(**payload.model_dump()))
