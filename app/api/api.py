from fastapi import APIRouter, Depends
from app.api.endpoints import auth, data, health, ledger
from app.core.rate_limit import enforce_rate_limit

api_router = APIRouter(dependencies=[Depends(enforce_rate_limit)])

api_router.include_router(auth.router, tags=["authentication"])
api_router.include_router(data.router, tags=["sync"])
api_router.include_router(ledger.router, prefix="/ledger", tags=["ledger"])
api_router.include_router(health.router, tags=["health"])
