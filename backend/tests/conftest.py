"""Pytest configuration and fixtures for VentureHUB backend tests"""
import itertools
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from venturehub.main import app
from venturehub.models.database import Base, get_db
from venturehub.models.user import User
from venturehub.models.venture import Venture
from venturehub.services.chain_client import get_chain_client
from venturehub.services.content_store import get_content_store
from venturehub.services.sequencer import TransactionSequencer, get_sequencer

from tests.fakes import FakeChainClient, FakeContentStore, addr

# Load environment variables
load_dotenv()

# In-memory SQLite; StaticPool keeps the single connection alive for the whole test
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh database per test"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def chain() -> FakeChainClient:
    return FakeChainClient()


@pytest.fixture
def content_store() -> FakeContentStore:
    return FakeContentStore()


@pytest.fixture
def sequencer(chain: FakeChainClient) -> TransactionSequencer:
    return TransactionSequencer(chain)


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    chain: FakeChainClient,
    content_store: FakeContentStore,
    sequencer: TransactionSequencer,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client wired to the fakes"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_chain_client] = lambda: chain
    app.dependency_overrides[get_content_store] = lambda: content_store
    app.dependency_overrides[get_sequencer] = lambda: sequencer

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory for persisted users"""
    counter = itertools.count(1)

    async def _make(role: str = "vc", wallet: Optional[str] = None, full_name: Optional[str] = None) -> User:
        n = next(counter)
        user = User(
            full_name=full_name or f"User {n}",
            email=f"user{n}@venturehub.test",
            role=role,
            wallet_address=wallet,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_venture(db_session: AsyncSession):
    """Factory for persisted ventures with distinct, deterministic addresses"""
    counter = itertools.count(1)

    async def _make(founder: User, name: Optional[str] = None, price: int = 1_250_000) -> Venture:
        n = next(counter)
        venture = Venture(
            venture_nft_id=n,
            founder_id=founder.id,
            name=name or f"Venture {n}",
            industry="Fintech",
            mission="Tokenize everything",
            team_info="Two founders",
            logo_url=f"ipfs://QmLogo{n}",
            metadata_uri=f"ipfs://QmMeta{n}",
            share_token_address=addr(0x1000 + n),
            vault_address=addr(0x2000 + n),
            sale_treasury_address=addr(0x3000 + n),
            dao_address=addr(0x4000 + n),
            timelock_address=addr(0x5000 + n),
            fundraising_goal=500_000 * 10 ** 6,
            total_shares=1_000_000 * 10 ** 18,
            initial_price_per_share=price,
            creation_tx_hash=f"0x{n:064x}",
        )
        db_session.add(venture)
        await db_session.commit()
        return venture

    return _make
