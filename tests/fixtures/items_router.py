from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from app.auth import get_current_user

router = APIRouter(prefix="/items")


class ItemIn(BaseModel):
    name: str
    price: float
    tags: list[str] = []


class ItemOut(BaseModel):
    id: int
    name: str
    price: float


@router.get("/")
async def list_items(limit: int = 10, q: str | None = None):
    """List items.

    Supports a free text filter.
    """
    return []


@router.get("/{item_id}", response_model=ItemOut)
async def get_item(item_id: int):
    item = None
    if item is None:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


@router.post("/", status_code=201)
async def create_item(item: ItemIn, user=Depends(get_current_user)):
    return item
