import json
import logging
import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from stockroom.db.session import Base
from stockroom import models  # noqa: F401
from stockroom.core.config import AppSettings
from stockroom.core.errors import StoreIOError
from stockroom.core.logging import JsonLogFormatter
from stockroom.crud.users import first_admin, list_categories
from stockroom.db.seed import seed_reference_data
from stockroom.db.transaction import commit_or_raise, unit_of_work
from stockroom.middlewares import request_id_ctx_var
from stockroom.models.user import User


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def test_seed_only_fills_empty_tables(db_session):
    first = seed_reference_data(db_session)
    second = seed_reference_data(db_session)

    assert first == {"categories": 5, "users": 1, "locations": 1}
    assert second == {"categories": 0, "users": 0, "locations": 0}
    assert first_admin(db_session).email == "admin@example.com"
    assert "PPE" in [c.name for c in list_categories(db_session)]


def test_unit_of_work_reports_failed_step(db_session):
    db_session.add(User(name="A", email="dup@example.com"))
    db_session.commit()

    with pytest.raises(StoreIOError) as excinfo:
        with unit_of_work(db_session, "import_users") as uow:
            with uow.step("first"):
                db_session.add(User(name="B", email="b@example.com"))
            with uow.step("second"):
                db_session.add(User(name="C", email="dup@example.com"))

    error = excinfo.value
    assert error.completed_steps == ["first"]
    assert error.failed_step == "second"
    assert isinstance(error.__cause__, IntegrityError)
    assert [u.email for u in db_session.query(User).all()] == ["dup@example.com"]


def test_commit_or_raise_wraps_backend_errors(db_session):
    db_session.add(User(name="A", email="dup@example.com"))
    commit_or_raise(db_session, "create_user")
    db_session.add(User(name="B", email="dup@example.com"))

    with pytest.raises(StoreIOError) as excinfo:
        commit_or_raise(db_session, "create_user")

    assert excinfo.value.details["operation"] == "create_user"


def test_json_formatter_includes_request_id_and_extra():
    record = logging.LogRecord("stockroom.test", logging.INFO, __file__, 1, "loan.created", None, None)
    record.extra_data = {"loan_id": "abc"}
    token = request_id_ctx_var.set("req-1")
    try:
        payload = json.loads(JsonLogFormatter().format(record))
    finally:
        request_id_ctx_var.reset(token)

    assert payload["message"] == "loan.created"
    assert payload["request_id"] == "req-1"
    assert payload["loan_id"] == "abc"
    assert payload["level"] == "INFO"


def test_settings_defaults(tmp_path):
    configured = AppSettings(DATA_DIR=tmp_path, ALLOWED_ORIGINS="http://a.test, http://b.test", R2_BUCKET="media")

    assert configured.database_url == f"sqlite:///{tmp_path / 'stockroom.db'}"
    assert configured.blob_dir == tmp_path / "blobs"
    assert configured.allowed_origins == ["http://a.test", "http://b.test"]
    assert configured.s3_bucket_name == "media"
    with pytest.raises(ValueError):
        AppSettings(BLOB_BACKEND="ftp")
