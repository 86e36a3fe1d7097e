"""Public member lookup by IC number."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from libs.common.field_crypto import FieldCipher
from libs.db.session import get_async_db
from services.khairat_service.routers._helpers import get_field_cipher
from services.khairat_service.schemas import SearchResult
from services.khairat_service.services.search import search_member

router = APIRouter(prefix="/khairat", tags=["khairat"])


@router.get("/search", response_model=SearchResult)
async def search(
    no_kp: Optional[str] = Query(None, description="IC number, dashes optional"),
    db: AsyncSession = Depends(get_async_db),
    cipher: FieldCipher = Depends(get_field_cipher),
):
    """
    Look a member up in the new registrations first, then the legacy records.
    Returns ``found: false`` rather than 404 when nothing matches.
    """
    return await search_member(db, no_kp, cipher=cipher)
