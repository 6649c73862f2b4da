import os
import sys
import uuid
import types
from datetime import datetime

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure the project root is on sys.path for imports during tests
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("ENCRYPTION_KEY", "00112233445566778899aabbccddeeff00112233445566778899aabbccddeeff")

from matchtrust.core.crypto import CipherConfig, TokenCipher
from matchtrust.core.database import Base
from matchtrust.models.user import User, UserRoleEnum
from matchtrust.models.professional_profile import ProfessionalProfile
from matchtrust.models.project import Project
from matchtrust.models.proposal import Proposal
from matchtrust.models.job import Job
from matchtrust.models.match import Match, MatchStatusEnum
from matchtrust.models import phone_reveal, review, activity, notification  # noqa: F401

TEST_KEY = bytes(range(32))
T0 = datetime(2024, 1, 1, 12, 0, 0)


class FixedClock:
    """A clock that stays put until a test moves it"""
    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta):
        self.now = self.now + delta


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def cipher():
    return TokenCipher(CipherConfig(key=TEST_KEY))


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db(engine):
    Session = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


def new_id() -> str:
    return str(uuid.uuid4())


async def make_user(db, role=UserRoleEnum.client, phone=None, whatsapp=None, name=None, with_profile=False):
    user_id = new_id()
    user = User(
        user_id=user_id,
        email=f"{user_id}@example.com",
        name=name or f"{role.value}-{user_id[:6]}",
        role=role,
        phone=phone,
        whatsapp_number=whatsapp,
    )
    db.add(user)
    if with_profile:
        db.add(ProfessionalProfile(profile_id=new_id(), user_id=user_id, headline="Plumber"))
    await db.flush()
    return user


async def make_match(
    db,
    client=None,
    professional=None,
    status=MatchStatusEnum.active,
    with_job=True,
    link_job=True,
):
    """
    Build a full client/professional/project/proposal(/job)/match graph
    link_job=False leaves match.job_id empty while still creating the job for the project
    """
    client = client or await make_user(db, UserRoleEnum.client, phone="+1 (555) 010-2000")
    professional = professional or await make_user(
        db, UserRoleEnum.professional, phone="+44 20 7946 0958", with_profile=True
    )

    project = Project(project_id=new_id(), client_id=client.user_id, title="Fix the sink")
    db.add(project)
    proposal = Proposal(
        project_id=project.project_id,
        professional_id=professional.user_id,
        message="I can do it",
        status="accepted",
    )
    db.add(proposal)
    await db.flush()

    job = None
    if with_job:
        job = Job(project_id=project.project_id, title="Fix the sink")
        db.add(job)
        await db.flush()

    match = Match(
        proposal_id=proposal.proposal_id,
        client_id=client.user_id,
        professional_id=professional.user_id,
        project_id=project.project_id,
        job_id=job.job_id if (job and link_job) else None,
        status=status,
        phone_reveal_count=0,
        created_at=T0,
        updated_at=T0,
    )
    db.add(match)
    await db.commit()
    return types.SimpleNamespace(
        match=match, client=client, professional=professional,
        project=project, proposal=proposal, job=job,
    )


async def complete_match(db, world, clock=None):
    """Mark the job as confirmed by both sides the way the handshake leaves it"""
    from matchtrust.services.completion_service import CompletionService

    service = CompletionService(db, clock=clock or FixedClock())
    await service.request_completion(world.match.match_id, world.professional.user_id)
    await service.confirm_completion(world.match.match_id, world.client.user_id)
    return world
