"""Client management router.

Endpoints:
    GET    /api/clients/          List the owner's clients (favourites first)
    POST   /api/clients/          Create client
    GET    /api/clients/{id}      Get client
    PATCH  /api/clients/{id}      Update client
    DELETE /api/clients/{id}      Delete client

Documents keep their own snapshot of the client, so deleting or editing a
client never changes documents already written.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quotebook.auth.deps import get_current_owner
from quotebook.database import get_db
from quotebook.models.client import Client
from quotebook.schemas.client import ClientCreate, ClientOut, ClientUpdate
from quotebook.utils.cache import cached, invalidate_cache, owner_key

router = APIRouter()


async def _get_client(db: AsyncSession, owner_id: str, client_id: str) -> Client:
    result = await db.execute(
        select(Client).where(Client.id == client_id, Client.user_id == owner_id)
    )
    client = result.scalar_one_or_none()
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.get("/", response_model=list[ClientOut])
@cached(prefix="clients", key_builder=owner_key("clients"))
async def list_clients(
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    """List all clients for the current owner."""
    result = await db.execute(
        select(Client)
        .where(Client.user_id == owner_id)
        .order_by(Client.is_favorite.desc(), Client.name)
    )
    return [ClientOut.model_validate(c) for c in result.scalars().all()]


@router.post("/", response_model=ClientOut, status_code=201)
async def create_client(
    body: ClientCreate,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    """Create a new client."""
    client = Client(id=str(uuid.uuid4()), user_id=owner_id, **body.model_dump())
    db.add(client)
    await db.flush()
    await invalidate_cache(f"clients:{owner_id}*")
    return ClientOut.model_validate(client)


@router.get("/{client_id}", response_model=ClientOut)
async def get_client(
    client_id: str,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    return ClientOut.model_validate(await _get_client(db, owner_id, client_id))


@router.patch("/{client_id}", response_model=ClientOut)
async def update_client(
    client_id: str,
    body: ClientUpdate,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    """Update a client."""
    client = await _get_client(db, owner_id, client_id)

    updates = body.model_dump(exclude_unset=True)
    for key, value in updates.items():
        setattr(client, key, value)
    await db.flush()
    await invalidate_cache(f"clients:{owner_id}*")
    return ClientOut.model_validate(client)


@router.delete("/{client_id}", status_code=204)
async def delete_client(
    client_id: str,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    """Delete a client (documents keep their snapshot)."""
    client = await _get_client(db, owner_id, client_id)
    await db.delete(client)
    await db.flush()
    await invalidate_cache(f"clients:{owner_id}*")
    return Response(status_code=204)
