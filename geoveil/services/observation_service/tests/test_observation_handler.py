"""Tests for ObservationHandler orchestration."""
import pytest
from unittest.mock import MagicMock

from geoveil.shared.database import DuplicateError, InMemoryObservationRepository, NotFoundError
from geoveil.shared.errors import IllegalTransition, TerminalStateViolation
from geoveil.shared.models import Attachments, Coordinate, ObservationStatus
from geoveil.shared.utils import ManualClock, SeededRandomSource
from geoveil.services.audit_service import AuditAction, AuditLogger
from geoveil.services.geo_privacy import PrivacyConfig, PrivacyPolicy, RingSampler, distance_meters
from geoveil.services.observation_service.handler import ObservationHandler

ACCRA = Coordinate(latitude=5.6037, longitude=-0.1870, accuracy_meters=10.0)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def audit(clock):
    return AuditLogger(clock=clock)


@pytest.fixture
def handler(clock, audit):
    return ObservationHandler(
        repository=InMemoryObservationRepository(),
        policy=PrivacyPolicy(RingSampler(SeededRandomSource(seed=11))),
        config=PrivacyConfig(),
        clock=clock,
        audit_logger=audit,
    )


class TestCreateObservation:
    def test_creates_submitted_record(self, handler, clock):
        record = handler.create_observation(ACCRA, requested_blur_radius=300)

        assert record.id.startswith("obs_")
        assert record.status is ObservationStatus.SUBMITTED
        assert record.created_at == clock.now()
        assert [(c.status, c.at) for c in record.history] == [
            (ObservationStatus.SUBMITTED, clock.now()),
        ]
        assert record.exact_location == ACCRA

    def test_public_location_within_blur_ring(self, handler):
        record = handler.create_observation(ACCRA, requested_blur_radius=300)
        assert 150.0 - 1e-6 <= distance_meters(record.public_location, ACCRA) <= 300.0 + 1e-6

    def test_zero_blur_exposes_exact(self, handler):
        record = handler.create_observation(ACCRA, requested_blur_radius=0)
        assert record.blur_radius_meters == 0
        assert record.public_location == ACCRA

    def test_sensitive_flag_forces_floor(self, handler):
        record = handler.create_observation(ACCRA, requested_blur_radius=100, sensitive_mode=True)
        assert record.blur_radius_meters == 500

    def test_sensitive_mode_from_config(self, clock):
        handler = ObservationHandler(
            config=PrivacyConfig(sensitive_mode=True),
            clock=clock,
        )
        record = handler.create_observation(ACCRA, requested_blur_radius=0)
        assert record.blur_radius_meters == 500
        assert record.public_location != ACCRA

    def test_explicit_flag_overrides_config(self, clock):
        handler = ObservationHandler(config=PrivacyConfig(sensitive_mode=True), clock=clock)
        record = handler.create_observation(ACCRA, requested_blur_radius=0, sensitive_mode=False)
        assert record.blur_radius_meters == 0

    def test_request_clamped_to_max(self, handler):
        record = handler.create_observation(ACCRA, requested_blur_radius=9000)
        assert record.blur_radius_meters == 2000

    def test_ids_are_unique(self, handler):
        ids = {handler.create_observation(ACCRA, 100).id for _ in range(50)}
        assert len(ids) == 50

    def test_record_is_stored(self, handler):
        record = handler.create_observation(ACCRA, 100)
        assert handler.get_observation(record.id) == record
        assert handler.list_observations() == [record]

    def test_attachments_pass_through(self, handler):
        attachments = Attachments(category="water", media_ids=("m1",))
        record = handler.create_observation(ACCRA, 100, attachments=attachments)
        assert handler.get_observation(record.id).attachments == attachments

    def test_public_location_stable_across_reads(self, handler):
        record = handler.create_observation(ACCRA, 800)
        handler.acknowledge_receipt(record.id)
        handler.start_progress(record.id)
        assert handler.get_observation(record.id).public_location == record.public_location

    def test_creation_audited(self, handler, audit):
        record = handler.create_observation(ACCRA, 100)
        entries = audit.query(observation_id=record.id)
        assert [e.action for e in entries] == [AuditAction.OBSERVATION_CREATED]
        assert "latitude" not in str(entries[0].details)

    def test_duplicate_id_rejected(self, handler, monkeypatch):
        monkeypatch.setattr(
            "geoveil.services.observation_service.handler.new_observation_id",
            lambda: "obs_fixed",
        )
        handler.create_observation(ACCRA, 100)
        with pytest.raises(DuplicateError):
            handler.create_observation(ACCRA, 100)


class TestTransitions:
    def test_full_lifecycle(self, handler, clock):
        record = handler.create_observation(ACCRA, 100)
        clock.advance(5)
        handler.acknowledge_receipt(record.id)
        clock.advance(60)
        handler.start_progress(record.id)
        clock.advance(60)
        resolved = handler.resolve(record.id)

        assert resolved.status is ObservationStatus.RESOLVED
        assert [c.status for c in resolved.history] == [
            ObservationStatus.SUBMITTED,
            ObservationStatus.RECEIVED,
            ObservationStatus.IN_PROGRESS,
            ObservationStatus.RESOLVED,
        ]
        assert handler.get_observation(record.id) == resolved

    def test_resolved_is_terminal(self, handler):
        record = handler.create_observation(ACCRA, 100)
        handler.acknowledge_receipt(record.id)
        handler.start_progress(record.id)
        resolved = handler.resolve(record.id)

        with pytest.raises(TerminalStateViolation):
            handler.return_to_received(record.id)

        stored = handler.get_observation(record.id)
        assert stored.history == resolved.history
        assert len(stored.history) == 4

    def test_return_to_received(self, handler):
        record = handler.create_observation(ACCRA, 100)
        handler.acknowledge_receipt(record.id)
        handler.start_progress(record.id)
        back = handler.return_to_received(record.id)
        assert back.status is ObservationStatus.RECEIVED

    def test_cannot_resolve_from_received(self, handler):
        record = handler.create_observation(ACCRA, 100)
        handler.acknowledge_receipt(record.id)
        with pytest.raises(IllegalTransition):
            handler.resolve(record.id)
        assert handler.get_observation(record.id).status is ObservationStatus.RECEIVED

    def test_receipt_only_once(self, handler):
        record = handler.create_observation(ACCRA, 100)
        handler.acknowledge_receipt(record.id)
        with pytest.raises(IllegalTransition):
            handler.acknowledge_receipt(record.id)

    def test_rejection_audited(self, handler, audit):
        record = handler.create_observation(ACCRA, 100)
        with pytest.raises(IllegalTransition):
            handler.resolve(record.id)

        rejected = audit.query(action=AuditAction.TRANSITION_REJECTED)
        assert len(rejected) == 1
        assert rejected[0].details["error_code"] == "ILLEGAL_TRANSITION"

    def test_unknown_record(self, handler):
        with pytest.raises(NotFoundError):
            handler.acknowledge_receipt("obs_missing")

    def test_rejected_transition_not_saved(self, clock):
        repository = MagicMock(wraps=InMemoryObservationRepository())
        handler = ObservationHandler(repository=repository, clock=clock)
        record = handler.create_observation(ACCRA, 100)
        repository.save.reset_mock()

        with pytest.raises(IllegalTransition):
            handler.start_progress(record.id)

        repository.save.assert_not_called()


class TestReadAndExport:
    def test_private_map_view_audited(self, handler, audit):
        record = handler.create_observation(ACCRA, 300)
        view = handler.view_on_map(record.id, private_view=True)

        assert view.marker == ACCRA
        assert audit.query(action=AuditAction.EXACT_LOCATION_VIEWED)

    def test_public_map_view_not_audited(self, handler, audit):
        record = handler.create_observation(ACCRA, 300)
        view = handler.view_on_map(record.id, private_view=False)

        assert view.marker == record.public_location
        assert not audit.query(action=AuditAction.EXACT_LOCATION_VIEWED)

    def test_distance_public_vs_private(self, handler):
        record = handler.create_observation(ACCRA, 300)
        assert handler.distance_from(ACCRA, record.id, private_view=True) == 0
        assert 150.0 - 1e-6 <= handler.distance_from(ACCRA, record.id, private_view=False) <= 300.0 + 1e-6

    def test_export_returns_plain_shape(self, handler, audit):
        record = handler.create_observation(ACCRA, 300)
        payload = handler.export_observation(record.id)

        assert payload["id"] == record.id
        assert payload["blurRadiusMeters"] == 300
        assert audit.query(action=AuditAction.OBSERVATION_EXPORTED)

    def test_delete(self, handler, audit):
        record = handler.create_observation(ACCRA, 300)
        assert handler.delete_observation(record.id) is True
        assert handler.delete_observation(record.id) is False
        assert handler.list_observations() == []
        assert len(audit.query(action=AuditAction.OBSERVATION_DELETED)) == 1

    def test_heatmap_over_current_records(self, handler, audit):
        for _ in range(20):
            handler.create_observation(ACCRA, 0)

        cells = handler.build_heatmap()

        assert len(cells) == 1
        assert cells[0].raw_count == 20
        assert audit.query(action=AuditAction.HEATMAP_PUBLISHED)

    def test_audit_chain_intact_after_workflow(self, handler, audit):
        record = handler.create_observation(ACCRA, 300)
        handler.acknowledge_receipt(record.id)
        handler.view_on_map(record.id, private_view=True)
        handler.export_observation(record.id)
        assert audit.verify_chain() is True
