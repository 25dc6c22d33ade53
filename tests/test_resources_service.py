"""Tests for resources/service.py module.

Tests lifecycle operations against an in-memory state store with a fake
build runner.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from packer_provider.db import Base, get_session
from packer_provider.resources.controller import PackerBuildController
from packer_provider.resources.models import BuildResourceState
from packer_provider.resources.runner import BuildResult, PackerBuildError
from packer_provider.resources.schema import BuildConfig, ConfigurationError
from packer_provider.resources.service import (
    ResourceExistsError,
    ResourceNotFoundError,
    create_resource,
    delete_resource,
    get_resource_or_none,
    import_resource,
    list_resources,
    read_resource,
    update_resource,
)


def _ok(config: BuildConfig) -> BuildResult:
    now = datetime.now(timezone.utc)
    return BuildResult(
        command="packer build", exit_code=0, output="", started_at=now, finished_at=now
    )


def _fail(config: BuildConfig) -> BuildResult:
    raise PackerBuildError(
        "could not run packer command; output: boom", exit_code=1, output="boom"
    )


@pytest.fixture
def engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def session_factory(engine):
    """Create a session factory for testing."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    """Create a session for testing."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def ok_controller() -> PackerBuildController:
    """Controller whose builds always succeed."""
    return PackerBuildController(runner=_ok)


@pytest.fixture
def failing_controller() -> PackerBuildController:
    """Controller whose builds always fail."""
    return PackerBuildController(runner=_fail)


@pytest.fixture
def config() -> dict:
    """Sample raw configuration."""
    return {
        "file": "image.pkr.hcl",
        "variables": {"env": "prod"},
        "additional_params": ["-debug"],
        "environment": {"PKR_VAR_region": "eu"},
        "triggers": {"commit": "abc123"},
        "force": True,
    }


class TestCreateResource:
    """Tests for create_resource."""

    def test_create_stores_record(self, session, ok_controller, config):
        """Should persist the created record."""
        record = create_resource(session, config, controller=ok_controller)
        session.commit()

        state = session.get(BuildResourceState, record.id)
        assert state is not None
        assert state.file == "image.pkr.hcl"
        assert state.variables == {"env": "prod"}
        assert state.additional_params == ["-debug"]
        assert state.triggers == {"commit": "abc123"}
        assert state.force is True
        assert state.build_uuid == record.build_uuid

    def test_failed_build_stores_nothing(self, session, failing_controller, config):
        """Should not write any state when the build fails."""
        with pytest.raises(PackerBuildError):
            create_resource(session, config, controller=failing_controller)

        assert session.execute(select(BuildResourceState)).first() is None

    def test_invalid_config_stores_nothing(self, session, ok_controller):
        """Should not write any state for invalid configuration."""
        with pytest.raises(ConfigurationError):
            create_resource(session, {"force": True}, controller=ok_controller)

        assert session.execute(select(BuildResourceState)).first() is None

    def test_default_controller_runs_packer(self, session, config):
        """Should use PackerBuildController with run_packer_build by default."""
        with patch(
            "packer_provider.resources.controller.run_packer_build"
        ) as mock_build:
            record = create_resource(session, config)

        mock_build.assert_called_once()
        assert record.id is not None


class TestReadResource:
    """Tests for read_resource and get_resource_or_none."""

    def test_read_returns_stored_record(self, session, ok_controller, config):
        """Should return the stored record unchanged."""
        created = create_resource(session, config, controller=ok_controller)
        session.commit()

        record = read_resource(session, created.id, controller=ok_controller)
        assert record == created

    def test_read_does_not_build(self, session, config):
        """Reading should never run a build."""
        created = create_resource(
            session, config, controller=PackerBuildController(runner=_ok)
        )

        record = read_resource(
            session, created.id, controller=PackerBuildController(runner=_fail)
        )
        assert record.build_uuid == created.build_uuid

    def test_read_missing(self, session):
        """Should raise ResourceNotFoundError for unknown IDs."""
        with pytest.raises(ResourceNotFoundError) as exc_info:
            read_resource(session, "missing")
        assert exc_info.value.code == "resource_not_found"
        assert exc_info.value.resource_id == "missing"

    def test_get_resource_or_none(self, session, ok_controller, config):
        """Should return the record or None."""
        created = create_resource(session, config, controller=ok_controller)
        assert get_resource_or_none(session, created.id) == created
        assert get_resource_or_none(session, "missing") is None


class TestUpdateResource:
    """Tests for update_resource."""

    def test_update_changes_token_keeps_id(self, session, ok_controller, config):
        """Should store a new build_uuid under the same id."""
        created = create_resource(session, config, controller=ok_controller)

        updated = update_resource(session, created.id, config, controller=ok_controller)

        assert updated.id == created.id
        assert updated.build_uuid != created.build_uuid
        stored = read_resource(session, created.id)
        assert stored.build_uuid == updated.build_uuid

    def test_update_replaces_config(self, session, ok_controller, config):
        """Should store the proposed configuration."""
        created = create_resource(session, config, controller=ok_controller)

        update_resource(
            session,
            created.id,
            {"file": "other.pkr.hcl", "variables": {"env": "dev"}},
            controller=ok_controller,
        )

        stored = read_resource(session, created.id)
        assert stored.file == "other.pkr.hcl"
        assert stored.variables == {"env": "dev"}
        assert stored.triggers == {}
        assert stored.force is False

    def test_failed_update_keeps_state(self, session_factory, config):
        """A failed build should leave the stored state unchanged."""
        with get_session(session_factory) as session:
            created = create_resource(
                session, config, controller=PackerBuildController(runner=_ok)
            )

        with pytest.raises(PackerBuildError):
            with get_session(session_factory) as session:
                update_resource(
                    session,
                    created.id,
                    {"file": "other.pkr.hcl"},
                    controller=PackerBuildController(runner=_fail),
                )

        with get_session(session_factory) as session:
            stored = read_resource(session, created.id)
        assert stored.id == created.id
        assert stored.build_uuid == created.build_uuid
        assert stored.file == "image.pkr.hcl"

    def test_update_stamps_utc(self, session, ok_controller, config):
        """created_at and updated_at should both be UTC and ordered."""
        created = create_resource(session, config, controller=ok_controller)
        session.flush()
        update_resource(session, created.id, config, controller=ok_controller)

        state = session.get(BuildResourceState, created.id)
        assert state.created_at.utcoffset() == timedelta(0)
        assert state.updated_at.utcoffset() == timedelta(0)
        assert state.created_at <= state.updated_at

    def test_update_missing(self, session, ok_controller, config):
        """Should raise ResourceNotFoundError for unknown IDs."""
        with pytest.raises(ResourceNotFoundError):
            update_resource(session, "missing", config, controller=ok_controller)


class TestDeleteResource:
    """Tests for delete_resource."""

    def test_delete_then_read(self, session, ok_controller, config):
        """Read after delete should report the resource is gone."""
        created = create_resource(session, config, controller=ok_controller)

        delete_resource(session, created.id, controller=ok_controller)

        assert get_resource_or_none(session, created.id) is None
        with pytest.raises(ResourceNotFoundError):
            read_resource(session, created.id)

    def test_delete_runs_no_build(self, session, config):
        """Deleting should not run any command."""
        created = create_resource(
            session, config, controller=PackerBuildController(runner=_ok)
        )
        delete_resource(
            session, created.id, controller=PackerBuildController(runner=_fail)
        )
        assert get_resource_or_none(session, created.id) is None

    def test_delete_missing(self, session):
        """Should raise ResourceNotFoundError for unknown IDs."""
        with pytest.raises(ResourceNotFoundError):
            delete_resource(session, "missing")


class TestImportResource:
    """Tests for import_resource."""

    def test_import_stores_without_build(self, session, config):
        """Should store the record under the given id without a token."""
        with patch(
            "packer_provider.resources.controller.run_packer_build"
        ) as mock_build:
            record = import_resource(session, "existing-build", config)

        mock_build.assert_not_called()
        assert record.id == "existing-build"
        assert record.build_uuid is None
        assert read_resource(session, "existing-build") == record

    def test_import_then_update_assigns_token(self, session, ok_controller, config):
        """The first update after import should assign a build_uuid."""
        import_resource(session, "existing-build", config)

        updated = update_resource(
            session, "existing-build", config, controller=ok_controller
        )

        assert updated.id == "existing-build"
        assert updated.build_uuid is not None

    def test_import_existing_id(self, session, ok_controller, config):
        """Should refuse to import over a stored resource."""
        created = create_resource(session, config, controller=ok_controller)

        with pytest.raises(ResourceExistsError) as exc_info:
            import_resource(session, created.id, config)
        assert exc_info.value.code == "resource_exists"


class TestListResources:
    """Tests for list_resources."""

    def test_empty(self, session):
        """Should return an empty list."""
        assert list_resources(session) == []

    def test_lists_all(self, session, ok_controller, config):
        """Should return every stored resource."""
        ids = {
            create_resource(session, config, controller=ok_controller).id
            for _ in range(3)
        }
        session.commit()

        assert {r.id for r in list_resources(session)} == ids

    def test_limit(self, session, ok_controller, config):
        """Should honor the limit."""
        for _ in range(3):
            create_resource(session, config, controller=ok_controller)
        session.commit()

        assert len(list_resources(session, limit=2)) == 2
