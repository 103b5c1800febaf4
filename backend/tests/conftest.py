from __future__ import annotations

import os
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text
from sqlmodel import Session, SQLModel

from contacthub.api.deps import get_db
from contacthub.db import session as db_session_module
from contacthub.db.session import build_engine
from contacthub.main import app
from contacthub.models.workspace import Workspace, WorkspaceMember, WorkspaceRole
from contacthub.utils.security import create_access_token


@pytest.fixture()
def db_engine(tmp_path):
    test_database_url = os.getenv("TEST_DATABASE_URL")
    if not test_database_url:
        db_path = tmp_path / f"test_{uuid.uuid4().hex}.db"
        test_database_url = f"sqlite:///{db_path}"

    is_postgres = test_database_url.startswith("postgresql")

    admin_engine = None
    schema_name = None

    if is_postgres:
        schema_name = f"test_{uuid.uuid4().hex}"
        admin_engine = build_engine(test_database_url)
        with admin_engine.connect() as conn:
            conn.execution_options(isolation_level="AUTOCOMMIT").execute(
                text(f'CREATE SCHEMA IF NOT EXISTS "{schema_name}"')
            )
        client_encoding = os.getenv("POSTGRES_CLIENT_ENCODING", "UTF8")
        connect_args = {"options": f"-csearch_path={schema_name},public -cclient_encoding={client_encoding}"}
        engine = build_engine(test_database_url, connect_args=connect_args)
    else:
        engine = build_engine(test_database_url)

    SQLModel.metadata.create_all(bind=engine)

    original_engine = db_session_module.engine
    db_session_module.engine = engine

    def override_dependency():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = override_dependency

    yield engine

    app.dependency_overrides.pop(get_db, None)
    db_session_module.engine = original_engine
    engine.dispose()
    if is_postgres and admin_engine and schema_name:
        with admin_engine.connect() as conn:
            conn.execution_options(isolation_level="AUTOCOMMIT").execute(
                text(f'DROP SCHEMA IF EXISTS "{schema_name}" CASCADE')
            )
        admin_engine.dispose()


@pytest.fixture()
def db_session(db_engine) -> Session:
    with Session(db_engine) as session:
        yield session


@pytest.fixture()
def client(db_engine) -> TestClient:
    return TestClient(app)


def seed_workspace(session: Session, *, name: str = "Acme", role: WorkspaceRole = WorkspaceRole.OWNER) -> tuple[Workspace, uuid.UUID]:
    workspace = Workspace(name=name, slug=f"{name.lower()}-{uuid.uuid4().hex[:8]}")
    caller_id = uuid.uuid4()
    member = WorkspaceMember(workspace_id=workspace.id, user_id=caller_id, role=role.value)
    session.add_all([workspace, member])
    session.commit()
    return workspace, caller_id


@pytest.fixture()
def workspace_context(db_session: Session) -> dict:
    workspace, caller_id = seed_workspace(db_session)
    return {"workspace": workspace, "workspace_id": workspace.id, "caller_id": caller_id}


def auth_headers(user_id: uuid.UUID | str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(str(user_id))}"}
