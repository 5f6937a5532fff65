"""Shared API dependencies: caller identity and service wiring"""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from venturehub.config import get_settings
from venturehub.models.database import get_db
from venturehub.models.user import User, UserRole
from venturehub.services.aggregation import AggregationReader
from venturehub.services.chain_client import ChainClient, get_chain_client
from venturehub.services.content_store import ContentStore, get_content_store
from venturehub.services.records import RecordService
from venturehub.services.relay import RelayOrchestrator
from venturehub.services.sequencer import TransactionSequencer, get_sequencer

settings = get_settings()
security = HTTPBearer()


def decode_token(token: str) -> dict:
    """Verify a bearer token issued by the auth service"""
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    payload = decode_token(credentials.credentials)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token payload")

    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.ADMIN.value:
        raise HTTPException(status_code=403, detail="Admin role required")
    return current_user


async def get_relay(
    db: AsyncSession = Depends(get_db),
    chain: ChainClient = Depends(get_chain_client),
    content_store: ContentStore = Depends(get_content_store),
    sequencer: TransactionSequencer = Depends(get_sequencer),
) -> RelayOrchestrator:
    return RelayOrchestrator(db, chain, content_store, sequencer)


async def get_reader(
    db: AsyncSession = Depends(get_db),
    chain: ChainClient = Depends(get_chain_client),
) -> AggregationReader:
    return AggregationReader(db, chain)


async def get_records(db: AsyncSession = Depends(get_db)) -> RecordService:
    return RecordService(db)
