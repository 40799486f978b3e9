"""
Tests for the reconciler

Covers the create-or-update decision, identity stability and the sticky
display name.
"""
import pytest

from arlo_bridge.core.metrics import REGISTRY
from arlo_bridge.services.accessory_cache import AccessoryCache
from arlo_bridge.services.host import generate_identity
from arlo_bridge.services.reconciler import Created, Matched, Reconciler
from tests.conftest import make_device, make_record


def _outcome_count(outcome: str) -> float:
    return REGISTRY.get_sample_value(
        "arlo_bridge_reconciliations_total", {"outcome": outcome}
    ) or 0.0


@pytest.fixture
def cache():
    cache = AccessoryCache()
    cache.seal()
    return cache


@pytest.fixture
def reconciler(cache):
    return Reconciler(cache, generate_identity)


class TestGenerateIdentity:
    """Tests for the identity function."""

    def test_identity_is_deterministic(self):
        assert generate_identity("dev-1") == generate_identity("dev-1")

    def test_identities_differ_per_device(self):
        assert generate_identity("dev-1") != generate_identity("dev-2")

    def test_identity_matches_across_sessions(self):
        """Two independent reconcilers derive the same identity."""
        first = Reconciler(AccessoryCache(), generate_identity).reconcile(make_device(id="dev-7"))
        second = Reconciler(AccessoryCache(), generate_identity).reconcile(make_device(id="dev-7"))
        assert first.record.identity == second.record.identity


class TestReconcile:
    """Tests for Reconciler.reconcile."""

    def test_first_sighting_creates(self, reconciler, cache):
        device = make_device(id="dev-1", display_name="Hall Hub")
        outcome = reconciler.reconcile(device)

        assert isinstance(outcome, Created)
        assert outcome.record.identity == generate_identity("dev-1")
        assert outcome.record.display_name == "Hall Hub"
        assert outcome.record.context.device == device
        assert cache.find(outcome.record.identity) is outcome.record

    def test_repeated_reports_create_once(self, reconciler, cache):
        """Only the first report of an id is Created."""
        outcomes = [reconciler.reconcile(make_device(id="dev-1")) for _ in range(5)]

        assert sum(isinstance(o, Created) for o in outcomes) == 1
        assert all(isinstance(o, Matched) for o in outcomes[1:])
        assert len(cache) == 1

    def test_interleaved_devices(self, reconciler, cache):
        ids = ["a", "b", "a", "c", "b", "a"]
        outcomes = [reconciler.reconcile(make_device(id=i)) for i in ids]

        created = [o.record.context.device.id for o in outcomes if isinstance(o, Created)]
        assert created == ["a", "b", "c"]
        assert len(cache) == 3

    def test_display_name_is_sticky(self, reconciler):
        reconciler.reconcile(make_device(id="dev-1", display_name="Original"))
        outcome = reconciler.reconcile(make_device(id="dev-1", display_name="Renamed"))

        assert isinstance(outcome, Matched)
        assert outcome.record.display_name == "Original"
        assert outcome.record.context.device.display_name == "Renamed"
        assert outcome.context_changed is True

    def test_unchanged_snapshot_reported(self, reconciler):
        reconciler.reconcile(make_device(id="dev-1"))
        outcome = reconciler.reconcile(make_device(id="dev-1"))

        assert isinstance(outcome, Matched)
        assert outcome.context_changed is False

    def test_matches_restored_record(self):
        """A record restored from the host is matched, not re-created."""
        cache = AccessoryCache()
        restored = make_record("dev-2", display_name="Garage")
        cache.restore(restored)
        cache.seal()

        outcome = Reconciler(cache, generate_identity).reconcile(
            make_device(id="dev-2", type="camera", display_name="Garage Cam")
        )

        assert isinstance(outcome, Matched)
        assert outcome.record is restored
        assert restored.display_name == "Garage"
        assert restored.context.device.type == "camera"

    def test_same_name_different_ids(self, reconciler, cache):
        """Matching never uses the display name."""
        a = reconciler.reconcile(make_device(id="dev-1", display_name="Camera"))
        b = reconciler.reconcile(make_device(id="dev-2", display_name="Camera"))

        assert isinstance(a, Created)
        assert isinstance(b, Created)
        assert a.record.identity != b.record.identity
        assert len(cache) == 2

    def test_nameless_device_uses_id(self, reconciler):
        outcome = reconciler.reconcile(make_device(id="dev-5", display_name=""))
        assert outcome.record.display_name == "dev-5"

    def test_outcomes_counted(self, reconciler):
        created_before = _outcome_count("created")
        matched_before = _outcome_count("matched")

        reconciler.reconcile(make_device(id="metrics-1"))
        reconciler.reconcile(make_device(id="metrics-1"))

        assert _outcome_count("created") == created_before + 1
        assert _outcome_count("matched") == matched_before + 1


class TestHubScenario:
    """A hub reported twice with a changed name, starting from an empty cache."""

    def test_hub_reported_twice(self, reconciler, cache):
        first = reconciler.reconcile(make_device(id="dev-1", type="basestation", display_name="Hub"))
        assert isinstance(first, Created)
        assert len(cache) == 1
        assert first.record.display_name == "Hub"

        second = reconciler.reconcile(
            make_device(id="dev-1", type="basestation", display_name="Upstairs Hub")
        )
        assert isinstance(second, Matched)
        assert len(cache) == 1
        assert second.record.display_name == "Hub"
        assert second.record.context.device.display_name == "Upstairs Hub"
