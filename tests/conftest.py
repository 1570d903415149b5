"""
Pytest fixtures for the approval workflow test suite.

Provides:
- Structured-logging setup and a ``captured_logs`` fixture
- Database sessions with per-test rollback
- Organizational data factories (employees, departments, projects)
- In-memory collaborators for the pure engines (see tests/fakes.py)

Environment Variables:
- DATABASE_URL: SQLAlchemy URL of the test database.  Defaults to an
  in-memory SQLite database; set it to a PostgreSQL URL to run the same
  suite against PostgreSQL.
"""

import json
import logging
import os
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from approval_kernel.db.engine import (
    create_tables,
    drop_tables,
    init_engine_from_url,
    reset_engine,
)
from approval_kernel.domain.approval import ApprovalContext, RequestType
from approval_kernel.domain.clock import DeterministicClock
from approval_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from approval_kernel.models.organization import Department, Employee, Project
from approval_kernel.models.system_config import SystemConfig
from approval_kernel.utils.cache import RoleHolderCache
from tests.fakes import InMemoryChainStore, InMemoryDirectory, InMemoryRoleStore

# Organizational fixture data shared by most tests.
HR_MANAGER_ID = 200
FINANCE_MANAGER_ID = 300
GENERAL_MANAGER_ID = 100
DEPT_ID = 10
DEPT_MANAGER_ID = 1010
PROJECT_ID = 77
PROJECT_MANAGER_ID = 7700
REGIONAL_MANAGER_ID = 7701
EMPLOYEE_ID = 5001

DEFAULT_SQLITE_URL = "sqlite://"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture approval_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            ...
            logs = captured_logs()
            assert any(r["message"] == "approver_fallback" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("approval_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


def messages(records: list[dict]) -> list[str]:
    return [r["message"] for r in records]


# =============================================================================
# Database fixtures
# =============================================================================


def get_database_url() -> str:
    return os.environ.get("DATABASE_URL", DEFAULT_SQLITE_URL)


@pytest.fixture(scope="session")
def db_engine():
    """Single engine for the whole test session."""
    eng = init_engine_from_url(get_database_url(), echo=False)
    yield eng
    reset_engine()


@pytest.fixture(scope="session")
def db_tables(db_engine):
    """Create all tables once per session, drop them at the end."""
    drop_tables()
    create_tables()
    yield
    drop_tables()


@pytest.fixture(scope="function")
def session(db_tables, db_engine) -> Generator[Session, None, None]:
    """Database session whose changes are rolled back after each test.

    The session joins an outer transaction on a dedicated connection.
    Services only flush, so nothing a test writes is ever committed.
    """
    conn = db_engine.connect()
    trans = conn.begin()
    sess = Session(bind=conn, expire_on_commit=False)
    yield sess
    try:
        sess.close()
    finally:
        try:
            trans.rollback()
        finally:
            conn.close()


@pytest.fixture
def role_cache() -> RoleHolderCache:
    return RoleHolderCache()


@pytest.fixture
def deterministic_clock():
    return DeterministicClock()


# =============================================================================
# Data factories
# =============================================================================


@pytest.fixture
def create_employee(session: Session):
    def _create(
        employee_no: int,
        name: str | None = None,
        department_code: int | None = None,
        project_code: int | None = None,
    ) -> Employee:
        employee = Employee(
            employee_no=employee_no,
            employee_name=name or f"Employee {employee_no}",
            department_code=department_code,
            project_code=project_code,
        )
        session.add(employee)
        session.flush()
        return employee

    return _create


@pytest.fixture
def create_department(session: Session):
    def _create(
        dept_code: int, manager: int | None = None, name: str | None = None,
    ) -> Department:
        department = Department(
            dept_code=dept_code,
            dept_name=name or f"Department {dept_code}",
            dept_mgr_code=manager,
        )
        session.add(department)
        session.flush()
        return department

    return _create


@pytest.fixture
def create_project(session: Session):
    def _create(
        project_code: int,
        manager: int | None = None,
        regional_manager: int | None = None,
        name: str | None = None,
    ) -> Project:
        project = Project(
            project_code=project_code,
            project_name=name or f"Project {project_code}",
            project_mgr=manager,
            regional_mgr=regional_manager,
        )
        session.add(project)
        session.flush()
        return project

    return _create


@pytest.fixture
def role_holders(session: Session) -> dict[str, int]:
    """Store the three fixed role holders in system_config."""
    values = {
        "HR_MANAGER_EMPLOYEE_NO": HR_MANAGER_ID,
        "FINANCE_MANAGER_EMPLOYEE_NO": FINANCE_MANAGER_ID,
        "GENERAL_MANAGER_EMPLOYEE_NO": GENERAL_MANAGER_ID,
    }
    for key, value in values.items():
        session.add(
            SystemConfig(
                config_key=key,
                config_value=str(value),
                config_category="APPROVAL_ROLES",
                is_active=True,
            )
        )
    session.flush()
    return values


@pytest.fixture
def organization(create_employee, create_department, create_project, role_holders):
    """A department, a project, the role holders and one originating employee."""
    create_department(DEPT_ID, manager=DEPT_MANAGER_ID, name="Operations")
    create_project(
        PROJECT_ID,
        manager=PROJECT_MANAGER_ID,
        regional_manager=REGIONAL_MANAGER_ID,
        name="North Site",
    )
    for employee_no, name in (
        (HR_MANAGER_ID, "HR Manager"),
        (FINANCE_MANAGER_ID, "Finance Manager"),
        (GENERAL_MANAGER_ID, "General Manager"),
        (DEPT_MANAGER_ID, "Operations Manager"),
        (PROJECT_MANAGER_ID, "Site Manager"),
        (REGIONAL_MANAGER_ID, "Regional Manager"),
    ):
        create_employee(employee_no, name)
    return create_employee(
        EMPLOYEE_ID, "Requester", department_code=DEPT_ID, project_code=PROJECT_ID,
    )


# =============================================================================
# In-memory collaborators for engine tests
# =============================================================================


@pytest.fixture
def directory() -> InMemoryDirectory:
    """Directory with the same shape as the ``organization`` fixture."""
    d = InMemoryDirectory()
    d.add_department(DEPT_ID, manager_id=DEPT_MANAGER_ID, name="Operations")
    d.add_project(
        PROJECT_ID,
        manager_id=PROJECT_MANAGER_ID,
        regional_manager_id=REGIONAL_MANAGER_ID,
        name="North Site",
    )
    for employee_id, name in (
        (HR_MANAGER_ID, "HR Manager"),
        (FINANCE_MANAGER_ID, "Finance Manager"),
        (GENERAL_MANAGER_ID, "General Manager"),
        (DEPT_MANAGER_ID, "Operations Manager"),
        (PROJECT_MANAGER_ID, "Site Manager"),
        (REGIONAL_MANAGER_ID, "Regional Manager"),
    ):
        d.add_employee(employee_id, name)
    d.add_employee(
        EMPLOYEE_ID, "Requester", department_id=DEPT_ID, project_id=PROJECT_ID,
    )
    return d


@pytest.fixture
def roles() -> InMemoryRoleStore:
    return InMemoryRoleStore(
        hr=HR_MANAGER_ID, finance=FINANCE_MANAGER_ID, general=GENERAL_MANAGER_ID,
    )


@pytest.fixture
def chains() -> InMemoryChainStore:
    return InMemoryChainStore()


@pytest.fixture
def loan_context() -> ApprovalContext:
    return ApprovalContext(
        request_type=RequestType.LOAN.value,
        employee_id=EMPLOYEE_ID,
        department_id=DEPT_ID,
        project_id=PROJECT_ID,
    )
