"""API v1 router aggregation"""
from fastapi import APIRouter

from venturehub.api.v1 import ventures, proposals, governance, portfolio, investments, market, users

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(ventures.router, prefix="/ventures", tags=["Ventures"])
api_router.include_router(proposals.router, prefix="/proposals", tags=["Proposals"])
api_router.include_router(governance.router, prefix="/governance", tags=["Governance"])
api_router.include_router(portfolio.router, prefix="/portfolio", tags=["Portfolio"])
api_router.include_router(investments.router, prefix="/investments", tags=["Investments"])
api_router.include_router(market.router, prefix="/market", tags=["Market"])
