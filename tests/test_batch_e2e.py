"""End-to-end tests for snapshot -> compute -> store -> recompute workflow.

Tests the full lifecycle using production code with a synthetic snapshot:
- Real YAML snapshot loading and validation
- Real organization.yaml settings
- Real batch computation through the CLI
- Real metric store upserts on disk

Test scenario:
- 4 providers in one snapshot:
  - p1: standard plan, full market data
  - p2: tiered-rate plan at 0.8 clinical FTE
  - p3: specialty with no market row (fallback conversion factor)
  - p4: zero salary (skipped, never aborts the run)
- A productivity adjustment series is then replaced for p1 and the
  year recomputed; only p1's rows from the adjusted month onward change.
"""

import pytest
import yaml
from click.testing import CliRunner

from wrvucomp.cli.__main__ import cli
from wrvucomp.sdk import (
    MetricStore,
    load_engine_settings,
    load_snapshot,
    replace_series,
    run_batch,
)


TEST_YEAR = 2025
RAW_ACTUALS = [480.5, 520.25, 510.0, 495.75, 530.0, 505.5, 470.25, 540.0, 500.0, 515.75, 525.5, 498.25]

EXPECTED_PROVIDERS = ["p1", "p2", "p3"]
EXPECTED_METRICS = 36  # 3 providers x 12 months
ADJUSTED_MONTH = 6


def make_snapshot():
    providers = [
        {"id": "p1", "specialty": "Family Medicine", "base_salary": 270000,
         "compensation_model": "Standard"},
        {"id": "p2", "specialty": "Family Medicine", "base_salary": 270000,
         "clinical_fte": 0.8, "compensation_model": "Tiered CF", "holdback_percent": 5},
        {"id": "p3", "specialty": "Dermatology", "base_salary": 270000,
         "compensation_model": "Standard"},
        {"id": "p4", "specialty": "Family Medicine", "base_salary": 0,
         "compensation_model": "Standard"},
    ]
    return {
        "providers": providers,
        "benchmarks": [{
            "specialty": "Family Medicine",
            "total_comp": {"p25": 200000, "p50": 250000, "p75": 300000, "p90": 350000},
            "wrvu": {"p25": 4000, "p50": 4500, "p75": 5000, "p90": 5500},
            "conversion_factor": {"p25": 40, "p50": 45, "p75": 50, "p90": 55},
        }],
        "actuals": [
            {"provider_id": p["id"], "year": TEST_YEAR, "month": month, "value": value}
            for p in providers
            for month, value in enumerate(RAW_ACTUALS, start=1)
        ],
        "adjustments": [
            {"kind": "target", "provider_id": "p1", "year": TEST_YEAR, "month": 8,
             "name": "PTO", "value": -40},
            {"kind": "additional_pay", "provider_id": "p1", "year": TEST_YEAR, "month": 12,
             "name": "Medical Director", "value": 5000},
        ],
    }


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Isolated config dir with an organization file and a snapshot."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    monkeypatch.setenv("WRVU_COMP_CONFIG_PATH", str(config_dir))
    (config_dir / "organization.yaml").write_text(yaml.dump({
        "default_holdback_percent": 20,
        "fallback_conversion_factor": 60,
    }))

    snapshot_path = tmp_path / "snapshot.yaml"
    snapshot_path.write_text(yaml.dump(make_snapshot(), sort_keys=False))

    return {
        "config_dir": config_dir,
        "snapshot": snapshot_path,
        "output": tmp_path / "data" / f"metrics_{TEST_YEAR}.json",
    }


def run_compute(workspace):
    runner = CliRunner()
    result = runner.invoke(cli, [
        "compute", str(workspace["snapshot"]),
        "--year", str(TEST_YEAR),
        "--output", str(workspace["output"]),
        "--workers", "2",
    ])
    assert result.exit_code == 0, result.output
    return result


class TestBatchWorkflow:

    def test_compute_writes_store(self, workspace):
        result = run_compute(workspace)
        assert f"({EXPECTED_METRICS} created, 0 updated, 0 unchanged)" in result.output

        store = MetricStore.load(workspace["output"])
        assert len(store) == EXPECTED_METRICS
        for provider_id in EXPECTED_PROVIDERS:
            assert [m.month for m in store.for_provider(provider_id, TEST_YEAR)] == list(range(1, 13))
        assert store.for_provider("p4", TEST_YEAR) == []

    def test_stored_values(self, workspace):
        run_compute(workspace)
        store = MetricStore.load(workspace["output"])

        aug = store.get("p1", TEST_YEAR, 8)
        assert aug.target == pytest.approx(460)
        assert aug.incentive == pytest.approx((540 - 460) * 45)
        assert aug.holdback == pytest.approx(aug.incentive * 0.20)

        dec = store.get("p1", TEST_YEAR, 12)
        assert dec.additional_pay == 5000
        assert dec.cumulative_target == pytest.approx(500 * 12 - 40)

        # 0.8 clinical FTE scales the target down to 400
        assert store.get("p2", TEST_YEAR, 1).target == pytest.approx(400)
        assert store.get("p2", TEST_YEAR, 2).holdback == pytest.approx(
            store.get("p2", TEST_YEAR, 2).incentive * 0.05
        )

        # No market row: organization fallback rate drives the target
        p3 = store.get("p3", TEST_YEAR, 1)
        assert p3.conversion_factor == 60
        assert p3.target == pytest.approx(375)
        assert p3.wrvu_percentile == 0

    def test_report_lists_skip_and_fallback_warning(self, workspace):
        report = run_batch(
            load_snapshot(workspace["snapshot"]), TEST_YEAR, settings=load_engine_settings(),
        )
        assert [s.provider_id for s in report.skipped] == ["p4"]
        assert report.skipped[0].month is None
        assert any("p3" in w and "fallback" in w for w in report.warnings)
        assert any("Dermatology" in w for w in report.warnings)

    def test_recompute_after_series_replacement(self, workspace):
        run_compute(workspace)
        before = MetricStore.load(workspace["output"])

        snapshot = load_snapshot(workspace["snapshot"])
        adjustments = replace_series(
            snapshot.adjustments, "productivity", "p1", TEST_YEAR, "Call Coverage",
            {ADJUSTED_MONTH: 30},
        )
        data = snapshot.model_dump(mode="json")
        data["adjustments"] = [a.model_dump(mode="json") for a in adjustments]
        workspace["snapshot"].write_text(yaml.dump(data, sort_keys=False))

        result = run_compute(workspace)
        changed = 12 - ADJUSTED_MONTH + 1
        assert (
            f"(0 created, {changed} updated, {EXPECTED_METRICS - changed} unchanged)"
            in result.output
        )

        after = MetricStore.load(workspace["output"])
        assert after.get("p1", TEST_YEAR, ADJUSTED_MONTH - 1) == before.get("p1", TEST_YEAR, ADJUSTED_MONTH - 1)
        june = after.get("p1", TEST_YEAR, ADJUSTED_MONTH)
        assert june.actual == pytest.approx(RAW_ACTUALS[ADJUSTED_MONTH - 1] + 30)
        assert june.raw_actual == RAW_ACTUALS[ADJUSTED_MONTH - 1]
        assert after.get("p2", TEST_YEAR, 12) == before.get("p2", TEST_YEAR, 12)

    def test_rerun_is_idempotent(self, workspace):
        run_compute(workspace)
        result = run_compute(workspace)
        assert f"(0 created, 0 updated, {EXPECTED_METRICS} unchanged)" in result.output
