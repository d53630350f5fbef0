"""Tests for the report computation: aggregation, backlog join, rollups and payload."""

from dataclasses import replace

import pytest
from conftest import make_event, make_snapshot

from delivery_rate.application import compute_report
from delivery_rate.domain.organization import HEAD_OFFICE, OTHER, UNASSIGNED
from delivery_rate.domain.responsibility import taxonomy_pairs
from delivery_rate.errors import SchemaValidationError

PERIOD = 49


def _sample_events():
    return [
        make_event("r1", "北原裕二", "2025-01-10", "2025-01-25", "2024-12-20"),
        make_event("r2", "北原裕二", "2025-01-10", "2025-01-14", "2024-12-20"),
        make_event("r3", "小野克也", "2024-11-01", "2024-10-01", "2024-10-20", responsibility="設計対応"),
        make_event("r4", "郷田哲雄", "2025-03-01", "2025-04-01", "2025-02-27", responsibility="確定"),
        make_event("r5", "宍戸祐貴", "2025-03-01", "2025-03-20", "2025-01-01", responsibility="自社", reason="営業対応"),
        make_event("r6", "北原裕二", "2025-09-01", "2025-10-01", "2025-08-20"),
    ]


class TestComputeReportScenarios:
    def test_counted_event_with_judgments(self, settings):
        report = compute_report(PERIOD, _sample_events()[:1], [], settings=settings)
        record = report.records[0]
        assert record.days_diff == 15
        assert record.is_counted is True
        assert record.judgment1 is True
        assert record.judgment2 is True
        assert report.total_change_count == 1

    def test_small_change_only_in_drilldown(self, settings):
        report = compute_report(PERIOD, _sample_events()[1:2], [], settings=settings)
        assert report.total_change_count == 0
        assert len(report.records) == 1
        assert report.records[0].is_counted is False
        assert report.to_dict()["records"][0]["isCounted"] is False

    def test_missing_snapshots_zero_backlog(self, settings):
        report = compute_report(PERIOD, _sample_events(), None, settings=settings)
        assert report.total_change_count == 4
        assert all(bucket.backlog_count == 0 for bucket in report.monthly)
        assert all(bucket.change_rate == 0 for bucket in report.monthly)
        assert report.overall_change_rate == 0

    def test_head_office_person_ignores_tags(self, settings):
        events = [make_event("h1", "山口 篤樹", "2025-01-10", "2025-02-10", "2025-01-01", tags=("福岡営業所",))]
        report = compute_report(PERIOD, events, [], settings=settings)
        person = report.persons[0]
        assert (person.office, person.region) == (HEAD_OFFICE, HEAD_OFFICE)

    def test_events_outside_period_are_not_counted(self, settings):
        report = compute_report(PERIOD, _sample_events()[5:], [], settings=settings)
        assert report.total_change_count == 0
        assert report.record_count == 1
        assert report.persons == []


class TestRollups:
    def test_counts_land_in_application_month(self, settings):
        report = compute_report(PERIOD, _sample_events(), [], settings=settings)
        by_month = dict(zip(report.year_months, report.monthly))
        assert by_month["202412"].change_count == 1
        assert by_month["202410"].change_count == 1
        assert by_month["202502"].change_count == 1
        assert by_month["202501"].change_count == 1

    def test_exact_sums_across_levels(self, settings):
        report = compute_report(PERIOD, _sample_events(), [], settings=settings)
        for region in report.regions:
            assert sum(office.total_change_count for office in region.offices) == region.total_change_count
            for office in region.offices:
                assert sum(person.total_change_count for person in office.persons) == office.total_change_count
        assert sum(region.total_change_count for region in report.regions) == report.total_change_count

    def test_region_and_office_order(self, settings):
        report = compute_report(PERIOD, _sample_events(), [], settings=settings)
        assert [region.name for region in report.regions] == ["東日本", "西日本", "本社"]
        assert [office.name for office in report.offices] == ["福岡営業所", "北九州営業所", "名古屋営業所", "東京営業所"]

    def test_unassigned_person_goes_to_catch_all_region(self, settings):
        events = [make_event("u1", "", "2025-01-10", "2025-02-10", "2025-01-01")]
        report = compute_report(PERIOD, events, [], settings=settings)
        assert [region.name for region in report.regions] == ["東日本", "西日本", "本社", OTHER]
        assert report.persons[0].name == UNASSIGNED
        assert report.persons[0].office == UNASSIGNED

    def test_empty_input_still_lists_fixed_regions(self, settings):
        report = compute_report(PERIOD, [], [], settings=settings)
        assert [region.name for region in report.regions] == ["東日本", "西日本", "本社"]
        assert all(region.total_change_count == 0 for region in report.regions)


class TestBacklogJoin:
    def test_partial_snapshots_are_summed(self, settings):
        snapshots = [
            make_snapshot("202412", "北原裕二", 10),
            make_snapshot("2024/12", "北原裕二", 10),
            make_snapshot("202412", "小野克也", 5),
        ]
        report = compute_report(PERIOD, _sample_events()[:1], snapshots, settings=settings)
        december = dict(zip(report.year_months, report.monthly))["202412"]
        assert december.backlog_count == 25
        assert december.change_rate == pytest.approx(1 / 25)
        person = next(p for p in report.persons if p.name == "北原裕二")
        assert person.total_backlog_count == 20
        assert person.change_rate == pytest.approx(0.05)

    def test_snapshot_only_person_is_listed(self, settings):
        snapshots = [make_snapshot("202501", "芦川努", 8)]
        report = compute_report(PERIOD, [], snapshots, settings=settings)
        person = report.persons[0]
        assert (person.name, person.office, person.region) == ("芦川努", "北関東営業所", "東日本")
        assert person.total_change_count == 0
        assert person.change_rate == 0

    def test_snapshots_outside_period_ignored(self, settings):
        snapshots = [make_snapshot("202508", "北原裕二", 100)]
        report = compute_report(PERIOD, _sample_events()[:1], snapshots, settings=settings)
        assert report.total_backlog_count == 0

    def test_spaced_and_unspaced_names_join(self, settings):
        events = [make_event("r1", "北原 裕二", "2025-01-10", "2025-01-25", "2024-12-20")]
        snapshots = [make_snapshot("202412", "北原裕二", 10)]
        report = compute_report(PERIOD, events, snapshots, settings=settings)
        assert len(report.persons) == 1
        person = report.persons[0]
        assert (person.name, person.office) == ("北原 裕二", "福岡営業所")
        assert person.total_change_count == 1
        assert person.total_backlog_count == 10
        assert person.change_rate == pytest.approx(0.1)


class TestResponsibilityTables:
    def test_every_taxonomy_pair_present_once(self, settings):
        report = compute_report(PERIOD, [], [], settings=settings)
        pairs = [(item.category, item.reason) for item in report.responsibility]
        assert pairs == taxonomy_pairs()
        assert all(item.total == 0 for item in report.responsibility)

    def test_counted_events_fill_crosstab(self, settings):
        report = compute_report(PERIOD, _sample_events(), [], settings=settings)
        cells = {(item.category, item.reason): item for item in report.responsibility}
        assert cells[("社外", "施主要望")].monthly_counts["202412"] == 1
        assert cells[("自社", "設計対応")].total == 1
        assert cells[("自社", "営業対応")].monthly_counts["202501"] == 1
        assert cells[("納期確定", "確定")].monthly_counts["202502"] == 1
        assert report.unmatched_responsibility_count == 0

    def test_pairs_outside_taxonomy_are_tallied(self, settings):
        events = [make_event("x1", "北原裕二", "2025-01-10", "2025-02-10", "2025-01-01", responsibility="社外")]
        report = compute_report(PERIOD, events, [], settings=settings)
        assert report.unmatched_responsibility_count == 1

    def test_judgment_tally_per_category(self, settings):
        report = compute_report(PERIOD, _sample_events(), [], settings=settings)
        tallies = {tally.category: tally for tally in report.judgment_tallies}
        assert tallies["社外"].judgment1_yes == 1
        assert tallies["社外"].judgment2_yes == 1
        # r5: lead of 59 days fails both judgments
        assert tallies["自社"].judgment1_no == 1
        assert tallies["自社"].judgment2_no == 1


class TestPayload:
    def test_shape(self, settings):
        payload = compute_report(PERIOD, _sample_events(), [], settings=settings).to_dict()
        assert payload["period"] == PERIOD
        assert payload["dateRange"] == {"start": "2024/08/01", "end": "2025/07/31"}
        assert [row["month"] for row in payload["monthlyData"]][:2] == ["8月", "9月"]
        assert len(payload["monthlyData"]) == 12
        office = payload["byOffice"][0]
        assert office["name"] == "福岡営業所"
        assert office["tantoushaList"][0]["name"] == "北原裕二"
        assert payload["byRegion"][1]["offices"][0]["name"] == "福岡営業所"

    def test_drilldown_cap(self, settings):
        capped = replace(settings, drilldown_limit=2)
        report = compute_report(PERIOD, _sample_events(), [], settings=capped)
        assert len(report.records) == 2
        assert report.record_count == 6
        assert report.records_truncated is True


class TestValidation:
    @pytest.mark.parametrize("period", [0, -1, True, "49", None])
    def test_rejects_bad_period(self, period, settings):
        with pytest.raises(SchemaValidationError):
            compute_report(period, [], [], settings=settings)

    def test_negative_backlog_row_is_skipped(self, settings):
        snapshots = [make_snapshot("202412", "北原裕二", 10), make_snapshot("202412", "小野克也", -1)]
        report = compute_report(PERIOD, [], snapshots, settings=settings)
        assert report.total_backlog_count == 10
        assert [person.name for person in report.persons] == ["北原裕二"]
