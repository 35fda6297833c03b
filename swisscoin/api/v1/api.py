from fastapi import APIRouter
from swisscoin.api.v1.endpoints import phone, claims, shares, shared, contacts, ledger

api_router = APIRouter()

api_router.include_router(phone.router, prefix="/phone", tags=["phone"])
api_router.include_router(claims.router, prefix="/claims", tags=["claims"])
api_router.include_router(shares.router, prefix="/shares", tags=["shares"])
api_router.include_router(shared.router, prefix="/shared", tags=["shared"])
api_router.include_router(contacts.router, prefix="/contacts", tags=["contacts"])
api_router.include_router(ledger.router, prefix="/ledger", tags=["ledger"])
