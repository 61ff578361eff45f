"""Store-level tests for riskledger.services.metrics_snapshot: append-on-change, touch-on-unchanged, cached score."""

import unittest
from datetime import datetime, timedelta, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from riskledger.models import Base, Component, DependencyMetrics
from riskledger.schemas.metrics import ComponentMetricsAggregate
from riskledger.services.metrics_snapshot import (
    SnapshotTimestampError,
    changed_fields,
    get_metrics_history,
    get_most_recent_metrics,
    reconcile,
)

T0 = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def _session() -> Session:
    """In-memory SQLite session with all tables created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)()


def _component(db: Session, name: str = "acme-lib") -> Component:
    component = Component(uuid=f"uuid-{name}", name=name, version="1.0.0")
    db.add(component)
    db.flush()
    return component


def _metrics(high: int = 0, medium: int = 0) -> ComponentMetricsAggregate:
    """Consistent aggregate with only unaudited high/medium findings."""
    total = high + medium
    return ComponentMetricsAggregate(
        high=high,
        medium=medium,
        vulnerabilities=total,
        findings_total=total,
        findings_unaudited=total,
        inherited_risk_score=float(high * 5 + medium * 3),
    )


def _row_count(db: Session, component: Component) -> int:
    return db.query(DependencyMetrics).filter(DependencyMetrics.component_id == component.id).count()


class TestFirstSnapshot(unittest.TestCase):
    """No prior row: insert one with first_occurrence == last_occurrence == now."""

    def setUp(self) -> None:
        self.db = _session()
        self.component = _component(self.db)

    def tearDown(self) -> None:
        self.db.close()

    def test_creates_row(self) -> None:
        ref = reconcile(self.db, self.component, _metrics(high=1), T0)
        self.assertTrue(ref.created)
        self.assertEqual(_row_count(self.db, self.component), 1)
        row = get_most_recent_metrics(self.db, self.component.id)
        self.assertEqual(row.id, ref.metrics_id)
        self.assertEqual(row.first_occurrence, T0)
        self.assertEqual(row.last_occurrence, T0)
        self.assertEqual(row.high, 1)
        self.assertEqual(row.inherited_risk_score, 5.0)

    def test_sets_cached_score(self) -> None:
        reconcile(self.db, self.component, _metrics(high=1, medium=1), T0)
        self.assertEqual(self.component.last_inherited_risk_score, 8.0)

    def test_empty_aggregate_caches_zero(self) -> None:
        ref = reconcile(self.db, self.component, ComponentMetricsAggregate(), T0)
        self.assertEqual(ref.inherited_risk_score, 0.0)
        self.assertEqual(self.component.last_inherited_risk_score, 0.0)


class TestUnchangedSnapshot(unittest.TestCase):
    """Identical aggregate: no new row, only last_occurrence advances."""

    def setUp(self) -> None:
        self.db = _session()
        self.component = _component(self.db)
        self.first = reconcile(self.db, self.component, _metrics(high=2), T0)

    def tearDown(self) -> None:
        self.db.close()

    def test_touches_last_occurrence_only(self) -> None:
        later = T0 + timedelta(hours=1)
        ref = reconcile(self.db, self.component, _metrics(high=2), later)
        self.assertFalse(ref.created)
        self.assertEqual(ref.metrics_id, self.first.metrics_id)
        self.assertEqual(_row_count(self.db, self.component), 1)
        row = get_most_recent_metrics(self.db, self.component.id)
        self.assertEqual(row.first_occurrence, T0)
        self.assertEqual(row.last_occurrence, later)
        self.assertEqual(row.duration(), timedelta(hours=1))

    def test_cached_score_reaffirmed(self) -> None:
        self.component.last_inherited_risk_score = None
        reconcile(self.db, self.component, _metrics(high=2), T0 + timedelta(minutes=5))
        self.assertEqual(self.component.last_inherited_risk_score, 10.0)

    def test_repeated_runs_never_grow_table(self) -> None:
        for minutes in range(1, 6):
            reconcile(self.db, self.component, _metrics(high=2), T0 + timedelta(minutes=minutes))
        self.assertEqual(_row_count(self.db, self.component), 1)
        row = get_most_recent_metrics(self.db, self.component.id)
        self.assertEqual(row.last_occurrence, T0 + timedelta(minutes=5))


class TestChangedSnapshot(unittest.TestCase):
    """Any differing field: append a new row, leave the previous one untouched."""

    def setUp(self) -> None:
        self.db = _session()
        self.component = _component(self.db)
        reconcile(self.db, self.component, _metrics(high=1), T0)

    def tearDown(self) -> None:
        self.db.close()

    def test_appends_new_row(self) -> None:
        later = T0 + timedelta(hours=2)
        ref = reconcile(self.db, self.component, _metrics(high=1, medium=1), later)
        self.assertTrue(ref.created)
        self.assertEqual(_row_count(self.db, self.component), 2)
        self.assertEqual(ref.first_occurrence, later)
        self.assertEqual(ref.last_occurrence, later)

        history = get_metrics_history(self.db, self.component.id)
        self.assertEqual([r.first_occurrence for r in history], [T0, later])
        previous = history[0]
        self.assertEqual(previous.first_occurrence, T0)
        self.assertEqual(previous.last_occurrence, T0)
        self.assertEqual(previous.medium, 0)
        self.assertEqual(self.component.last_inherited_risk_score, 8.0)

    def test_policy_only_change_appends_row(self) -> None:
        changed = ComponentMetricsAggregate(
            **{
                **_metrics(high=1).metric_values(),
                "policy_violations_warn": 1,
                "policy_violations_total": 1,
                "policy_violations_audited": 1,
                "policy_violations_license_total": 1,
                "policy_violations_license_audited": 1,
            }
        )
        ref = reconcile(self.db, self.component, changed, T0 + timedelta(hours=1))
        self.assertTrue(ref.created)
        self.assertEqual(_row_count(self.db, self.component), 2)

    def test_change_back_to_earlier_state_appends_row(self) -> None:
        reconcile(self.db, self.component, _metrics(high=3), T0 + timedelta(hours=1))
        ref = reconcile(self.db, self.component, _metrics(high=1), T0 + timedelta(hours=2))
        self.assertTrue(ref.created)
        self.assertEqual(_row_count(self.db, self.component), 3)

    def test_changed_fields_lists_differences(self) -> None:
        row = get_most_recent_metrics(self.db, self.component.id)
        diff = changed_fields(row, _metrics(high=1, medium=1))
        self.assertIn("medium", diff)
        self.assertIn("inherited_risk_score", diff)
        self.assertNotIn("high", diff)
        self.assertEqual(changed_fields(row, _metrics(high=1)), [])


class TestReconcileTime(unittest.TestCase):
    """Reconcile time never moves a component's history backwards."""

    def setUp(self) -> None:
        self.db = _session()
        self.component = _component(self.db)
        self.first = reconcile(self.db, self.component, _metrics(high=1), T0 + timedelta(hours=1))

    def tearDown(self) -> None:
        self.db.close()

    def test_earlier_time_rejected_for_unchanged_metrics(self) -> None:
        with self.assertRaises(SnapshotTimestampError) as ctx:
            reconcile(self.db, self.component, _metrics(high=1), T0)
        self.assertEqual(ctx.exception.component_id, self.component.id)
        row = get_most_recent_metrics(self.db, self.component.id)
        self.assertEqual(row.last_occurrence, T0 + timedelta(hours=1))

    def test_earlier_time_rejected_for_changed_metrics(self) -> None:
        with self.assertRaises(SnapshotTimestampError):
            reconcile(self.db, self.component, _metrics(high=2), T0)
        self.assertEqual(_row_count(self.db, self.component), 1)
        self.assertEqual(get_most_recent_metrics(self.db, self.component.id).high, 1)

    def test_same_time_touches_current_row(self) -> None:
        ref = reconcile(self.db, self.component, _metrics(high=1), T0 + timedelta(hours=1))
        self.assertFalse(ref.created)
        self.assertEqual(ref.metrics_id, self.first.metrics_id)

    def test_naive_time_taken_as_utc(self) -> None:
        naive = datetime(2025, 3, 1, 14, 0, 0)
        ref = reconcile(self.db, self.component, _metrics(high=1), naive)
        self.assertEqual(ref.last_occurrence, T0 + timedelta(hours=2))
        self.assertEqual(ref.last_occurrence.utcoffset(), timedelta(0))


class TestStoredTimestamps(unittest.TestCase):
    """Timestamps reload from the database as aware UTC."""

    def setUp(self) -> None:
        self.db = _session()
        self.component = _component(self.db)

    def tearDown(self) -> None:
        self.db.close()

    def test_reloaded_row_is_aware_and_duration_works(self) -> None:
        reconcile(self.db, self.component, _metrics(high=1), T0)
        reconcile(self.db, self.component, _metrics(high=1), T0 + timedelta(minutes=45))
        self.db.commit()
        self.db.expire_all()

        row = get_most_recent_metrics(self.db, self.component.id)
        self.assertEqual(row.first_occurrence.utcoffset(), timedelta(0))
        self.assertEqual(row.last_occurrence, T0 + timedelta(minutes=45))
        self.assertEqual(row.duration(), timedelta(minutes=45))

    def test_non_utc_offset_stored_as_utc(self) -> None:
        plus_two = timezone(timedelta(hours=2))
        reconcile(self.db, self.component, _metrics(high=1), datetime(2025, 3, 1, 14, 0, 0, tzinfo=plus_two))
        self.db.commit()
        self.db.expire_all()
        self.assertEqual(get_most_recent_metrics(self.db, self.component.id).first_occurrence, T0)


class TestHistoryQueries(unittest.TestCase):
    """History is per component, oldest first, and can be bounded by since."""

    def setUp(self) -> None:
        self.db = _session()
        self.component = _component(self.db)
        self.other = _component(self.db, name="other-lib")
        reconcile(self.db, self.component, _metrics(high=1), T0)
        reconcile(self.db, self.component, _metrics(high=2), T0 + timedelta(days=1))
        reconcile(self.db, self.component, _metrics(high=3), T0 + timedelta(days=2))
        reconcile(self.db, self.other, _metrics(medium=1), T0)

    def tearDown(self) -> None:
        self.db.close()

    def test_history_is_per_component(self) -> None:
        self.assertEqual(len(get_metrics_history(self.db, self.component.id)), 3)
        self.assertEqual(len(get_metrics_history(self.db, self.other.id)), 1)

    def test_since_filters_closed_windows(self) -> None:
        history = get_metrics_history(self.db, self.component.id, since=T0 + timedelta(hours=12))
        self.assertEqual([r.high for r in history], [2, 3])

    def test_most_recent_is_latest_first_occurrence(self) -> None:
        self.assertEqual(get_most_recent_metrics(self.db, self.component.id).high, 3)

    def test_most_recent_none_without_rows(self) -> None:
        fresh = _component(self.db, name="fresh-lib")
        self.assertIsNone(get_most_recent_metrics(self.db, fresh.id))


if __name__ == "__main__":
    unittest.main()
