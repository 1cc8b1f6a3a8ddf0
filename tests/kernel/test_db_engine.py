"""Tests for engine and session management (payroll_kernel/db/engine.py)."""

from decimal import Decimal

import pytest
from sqlalchemy import inspect, select

from payroll_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from payroll_modules.payroll.orm import CompanyModel
from tests.conftest import make_company


@pytest.fixture
def memory_engine():
    engine = init_engine_from_url("sqlite:///:memory:")
    create_tables()
    yield engine
    reset_engine()


class TestEngineLifecycle:

    def test_uninitialized_raises(self):
        reset_engine()
        with pytest.raises(RuntimeError):
            get_engine()
        with pytest.raises(RuntimeError):
            get_session_factory()

    def test_create_and_drop_tables(self, memory_engine):
        tables = set(inspect(memory_engine).get_table_names())
        assert {
            "payroll_companies",
            "payroll_employees",
            "payroll_salary_components",
            "payroll_attendance_records",
            "payroll_records",
        } <= tables

        drop_tables()
        assert inspect(memory_engine).get_table_names() == []


class TestSessionScope:

    def test_commits_on_success(self, memory_engine):
        company = make_company(name="Globex")
        with session_scope() as session:
            session.add(CompanyModel.from_dto(company))

        with get_session_factory()() as session:
            stored = session.scalars(select(CompanyModel)).one()
        assert stored.name == "Globex"
        assert stored.pf_deduction_percentage == Decimal("12")
        assert stored.created_at is not None

    def test_rolls_back_on_error(self, memory_engine):
        with pytest.raises(ValueError):
            with session_scope() as session:
                session.add(CompanyModel.from_dto(make_company()))
                session.flush()
                raise ValueError("abort")

        with get_session_factory()() as session:
            assert session.scalars(select(CompanyModel)).all() == []
