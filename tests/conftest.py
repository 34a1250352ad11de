import pytest
import os
from datetime import date
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BOOTSTRAP_DATA"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"

from hris.database import Base, enable_sqlite_foreign_keys, get_db
from hris.main import app
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

TEST_PASSWORD = "Password@123"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine, "connect")
def _on_connect(dbapi_connection, connection_record):
    # Let SQLAlchemy emit BEGIN itself so SAVEPOINTs nest correctly under pysqlite
    dbapi_connection.isolation_level = None
    enable_sqlite_foreign_keys(dbapi_connection, connection_record)


@event.listens_for(engine, "begin")
def _on_begin(conn):
    conn.exec_driver_sql("BEGIN")


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    import hris.models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Get a clean database session for each test function with rollback safety."""
    connection = engine.connect()
    transaction = connection.begin()
    # Service commits release a savepoint and service rollbacks undo only their own work
    session = TestingSessionLocal(bind=connection, join_transaction_mode="create_savepoint")

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def department(db_session):
    from hris.models.department import Department

    dept = Department(department_name="Human Resource Management Office", description="HRMO")
    db_session.add(dept)
    db_session.commit()
    return dept


@pytest.fixture(scope="function")
def make_user(db_session, department):
    """
    Factory for accounts. Admin, HR and Employee accounts get a personnel
    record in the default department.
    """
    from hris.models.personnel import Personnel
    from hris.models.user import User, UserRole, UserStatus
    from hris.services import auth as auth_service

    def _make_user(username, role, status=UserStatus.ACTIVE, with_personnel=True, **personnel_fields):
        user = User(
            username=username,
            email=f"{username}@lgu.gov.ph",
            hashed_password=auth_service.get_password_hash(TEST_PASSWORD),
            role=role,
            status=status,
        )
        db_session.add(user)
        db_session.flush()
        if with_personnel and role != UserRole.APPLICANT:
            fields = {
                "first_name": username.capitalize(),
                "last_name": "Dela Cruz",
                "department_id": department.id,
                "designation": "Administrative Officer",
                "employment_type": "Regular",
                "date_hired": date(2020, 1, 6),
                "salary": 30000.0,
            }
            fields.update(personnel_fields)
            db_session.add(Personnel(user_id=user.id, **fields))
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make_user


@pytest.fixture(scope="function")
def admin_user(make_user):
    from hris.models.user import UserRole
    return make_user("admin", UserRole.ADMIN)


@pytest.fixture(scope="function")
def hr_user(make_user):
    from hris.models.user import UserRole
    return make_user("hrofficer", UserRole.HR)


@pytest.fixture(scope="function")
def employee_user(make_user):
    from hris.models.user import UserRole
    return make_user("juan", UserRole.EMPLOYEE)


@pytest.fixture(scope="function")
def leave_type(db_session):
    from hris.models.leave_type import LeaveType

    lt = LeaveType(leave_type_name="Vacation Leave", description="Annual vacation leave", max_days=15)
    db_session.add(lt)
    db_session.commit()
    return lt


@pytest.fixture(scope="function")
def job_posting(db_session, department):
    from hris.models.job_posting import JobPosting, PostingStatus

    posting = JobPosting(
        position_title="Administrative Aide IV",
        department_id=department.id,
        job_description="Records management and clerical support",
        qualifications="Completion of two years of college",
        salary_range="₱15,000 - ₱25,000",
        employment_type="Permanent",
        num_vacancies=2,
        posting_status=PostingStatus.PUBLISHED,
    )
    db_session.add(posting)
    db_session.commit()
    return posting


@pytest.fixture(scope="function")
def applicant_user(make_user, db_session):
    """Applicant account with a complete job portal profile."""
    from hris.models.job_applicant import JobApplicant
    from hris.models.user import UserRole

    user = make_user("applicant", UserRole.APPLICANT)
    db_session.add(JobApplicant(
        user_id=user.id,
        first_name="Rosa",
        last_name="Mendoza",
        email=user.email,
        phone="09171234567",
    ))
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture(scope="function")
def get_token():
    """Helper fixture to mint an access token for a user."""
    from hris.services.user_service import access_token_for

    def _get_token(user):
        return access_token_for(user)["access_token"]
    return _get_token


@pytest.fixture(scope="function")
def auth_headers(get_token):
    def _auth_headers(user):
        return {"Authorization": f"Bearer {get_token(user)}"}
    return _auth_headers


@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
