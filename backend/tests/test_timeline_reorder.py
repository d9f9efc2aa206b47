import pytest

from models.timeline_models import ReorderingType, TimingMode, TrackAssignment, TrackType
from operators.timeline_editor import place_asset_on_timeline
from operators.timeline_operator import (
    InvalidRangeError,
    InvalidReorderError,
    ItemNotInTrackError,
    MissingRequiredFieldError,
    TimelineItemNotFoundError,
    TrackNotFoundError,
    get_timeline,
)
from operators.timeline_reorder import (
    layout_sequential,
    layout_with_gaps,
    original_gaps,
    reorder_timeline_assets,
)


@pytest.fixture()
def clips(db, project, make_asset):
    """
    Three clips on video-1: A [0,2), B [3,8), C [10,13).

    Returns a name -> item id mapping.
    """
    ids = {}
    for name, start, duration in (("A", 0, 2), ("B", 3, 5), ("C", 10, 3)):
        asset = make_asset(name=name, duration=duration)
        result = place_asset_on_timeline(
            db, project.project_id, str(asset.asset_id), start_time=start, track_type=TrackType.VIDEO
        )
        assert result.track_id == "video-1"
        ids[name] = result.timeline_item_id
    return ids


def _timings(db, project, track_id="video-1"):
    track = get_timeline(db, project.project_id).get_track(track_id)
    return [(item.name, item.start_time, item.end_time) for item in track.items]


class TestWithinTrack:
    def test_sequential_with_gap(self, db, project, clips):
        result = reorder_timeline_assets(
            db,
            project.project_id,
            ReorderingType.WITHIN_TRACK,
            TimingMode.SEQUENTIAL,
            track_id="video-1",
            item_order=[clips["C"], clips["A"], clips["B"]],
            gap_duration=1,
        )

        assert result.success is True
        assert result.message == (
            "Successfully reordered 3 timeline items within track, making clips sequential."
        )
        assert result.conflicts_resolved is None
        assert _timings(db, project) == [("C", 0, 3), ("A", 4, 6), ("B", 7, 12)]
        assert get_timeline(db, project.project_id).duration == 12

    def test_preserve_gaps_pairs_gaps_positionally(self, db, project, clips):
        # Original chronological gaps: A->B = 1, B->C = 2
        reorder_timeline_assets(
            db,
            project.project_id,
            ReorderingType.WITHIN_TRACK,
            TimingMode.PRESERVE_GAPS,
            track_id="video-1",
            item_order=[clips["C"], clips["B"], clips["A"]],
        )

        assert _timings(db, project) == [("C", 0, 3), ("B", 4, 9), ("A", 11, 13)]

    def test_maintain_original_keeps_times(self, db, project, clips):
        result = reorder_timeline_assets(
            db,
            project.project_id,
            ReorderingType.WITHIN_TRACK,
            TimingMode.MAINTAIN_ORIGINAL,
            track_id="video-1",
            item_order=[clips["B"], clips["A"], clips["C"]],
        )

        assert result.conflicts_resolved is None
        assert result.message.endswith("maintaining original timing.")
        assert _timings(db, project) == [("B", 3, 8), ("A", 0, 2), ("C", 10, 13)]

    def test_incomplete_order_rejected(self, db, project, clips):
        with pytest.raises(InvalidReorderError, match="missing items"):
            reorder_timeline_assets(
                db,
                project.project_id,
                ReorderingType.WITHIN_TRACK,
                TimingMode.SEQUENTIAL,
                track_id="video-1",
                item_order=[clips["A"], clips["B"]],
            )

    def test_duplicate_ids_rejected(self, db, project, clips):
        with pytest.raises(InvalidReorderError, match="duplicate"):
            reorder_timeline_assets(
                db,
                project.project_id,
                ReorderingType.WITHIN_TRACK,
                TimingMode.SEQUENTIAL,
                track_id="video-1",
                item_order=[clips["A"], clips["A"], clips["B"], clips["C"]],
            )

    def test_foreign_item_rejected(self, db, project, clips):
        with pytest.raises(ItemNotInTrackError):
            reorder_timeline_assets(
                db,
                project.project_id,
                ReorderingType.WITHIN_TRACK,
                TimingMode.SEQUENTIAL,
                track_id="video-1",
                item_order=[clips["A"], clips["B"], clips["C"], "item-nope"],
            )

    def test_missing_fields(self, db, project, clips):
        with pytest.raises(MissingRequiredFieldError):
            reorder_timeline_assets(
                db,
                project.project_id,
                ReorderingType.WITHIN_TRACK,
                TimingMode.SEQUENTIAL,
                track_id="video-1",
            )

    def test_unknown_track(self, db, project, clips):
        with pytest.raises(TrackNotFoundError):
            reorder_timeline_assets(
                db,
                project.project_id,
                ReorderingType.WITHIN_TRACK,
                TimingMode.SEQUENTIAL,
                track_id="video-4",
                item_order=[],
            )

    def test_negative_gap_rejected(self, db, project, clips):
        with pytest.raises(InvalidRangeError):
            reorder_timeline_assets(
                db,
                project.project_id,
                ReorderingType.WITHIN_TRACK,
                TimingMode.SEQUENTIAL,
                track_id="video-1",
                item_order=[clips["A"], clips["B"], clips["C"]],
                gap_duration=-1,
            )

    def test_preserve_gaps_zero_gap_takes_fallback(self, db, project, make_asset):
        ids = {}
        for name, start, duration in (("A", 0, 2), ("B", 2, 3)):
            asset = make_asset(name=name, duration=duration)
            ids[name] = place_asset_on_timeline(
                db, project.project_id, str(asset.asset_id), start_time=start, track_type=TrackType.VIDEO
            ).timeline_item_id

        reorder_timeline_assets(
            db,
            project.project_id,
            ReorderingType.WITHIN_TRACK,
            TimingMode.PRESERVE_GAPS,
            track_id="video-1",
            item_order=[ids["B"], ids["A"]],
            gap_duration=1,
        )

        assert _timings(db, project) == [("B", 0, 3), ("A", 4, 6)]

    def test_preserve_gaps_single_item_is_sequential(self, db, project, make_asset):
        asset = make_asset(name="Solo", duration=4)
        item_id = place_asset_on_timeline(
            db, project.project_id, str(asset.asset_id), start_time=5, track_type=TrackType.VIDEO
        ).timeline_item_id

        reorder_timeline_assets(
            db,
            project.project_id,
            ReorderingType.WITHIN_TRACK,
            TimingMode.PRESERVE_GAPS,
            track_id="video-1",
            item_order=[item_id],
            gap_duration=2,
        )

        assert _timings(db, project) == [("Solo", 0, 4)]
        assert get_timeline(db, project.project_id).duration == 4


class TestAcrossTracks:
    def test_move_into_other_track_and_relay(self, db, project, clips):
        result = reorder_timeline_assets(
            db,
            project.project_id,
            ReorderingType.ACROSS_TRACKS,
            TimingMode.SEQUENTIAL,
            track_assignments=[
                TrackAssignment(item_id=clips["C"], track_id="audio-1", position=0),
                TrackAssignment(item_id=clips["A"], track_id="audio-1", position=1),
            ],
            gap_duration=0.5,
        )

        assert result.message.startswith(
            "Successfully reordered 2 timeline items across tracks, making clips sequential"
        )
        assert [item.track_id for item in result.reordered_items] == ["audio-1", "audio-1"]
        assert _timings(db, project, "audio-1") == [("C", 0, 3), ("A", 3.5, 5.5)]
        assert _timings(db, project, "video-1") == [("B", 3, 8)]

    def test_preserve_gaps_uses_fixed_gap(self, db, project, clips):
        # Original gaps (1 and 2) are not carried over across tracks
        reorder_timeline_assets(
            db,
            project.project_id,
            ReorderingType.ACROSS_TRACKS,
            TimingMode.PRESERVE_GAPS,
            track_assignments=[
                TrackAssignment(item_id=clips["B"], track_id="video-1", position=0),
            ],
            gap_duration=0.5,
        )

        assert _timings(db, project) == [("B", 0, 5), ("A", 5.5, 7.5), ("C", 8, 11)]

    def test_assignments_inserted_by_ascending_position(self, db, project, clips):
        result = reorder_timeline_assets(
            db,
            project.project_id,
            ReorderingType.ACROSS_TRACKS,
            TimingMode.SEQUENTIAL,
            track_assignments=[
                TrackAssignment(item_id=clips["A"], track_id="video-1", position=1),
                TrackAssignment(item_id=clips["C"], track_id="video-1", position=0),
            ],
        )

        assert [item.name for item in result.reordered_items] == ["C", "A"]
        assert _timings(db, project) == [("C", 0, 3), ("A", 3, 5), ("B", 5, 10)]

    def test_forced_overlap_is_reported_not_resolved(self, db, project, make_asset):
        first = make_asset(name="Wide", duration=10)
        second = make_asset(name="Inset", duration=4)
        place_asset_on_timeline(
            db, project.project_id, str(first.asset_id), start_time=0, track_type=TrackType.VIDEO
        )
        inset = place_asset_on_timeline(
            db, project.project_id, str(second.asset_id), start_time=2, track_type=TrackType.VIDEO
        )
        assert inset.track_id == "video-2"

        result = reorder_timeline_assets(
            db,
            project.project_id,
            ReorderingType.ACROSS_TRACKS,
            TimingMode.MAINTAIN_ORIGINAL,
            track_assignments=[
                TrackAssignment(item_id=inset.timeline_item_id, track_id="video-1", position=1),
            ],
        )

        assert result.success is True
        assert result.message.endswith("maintaining original timing. Conflicts detected.")
        assert result.conflicts_resolved == ["Detected overlaps in Video 1: Wide and Inset"]
        assert _timings(db, project) == [("Wide", 0, 10), ("Inset", 2, 6)]

    def test_unknown_target_track_mutates_nothing(self, db, project, clips):
        before = get_timeline(db, project.project_id).to_document()

        with pytest.raises(TrackNotFoundError):
            reorder_timeline_assets(
                db,
                project.project_id,
                ReorderingType.ACROSS_TRACKS,
                TimingMode.SEQUENTIAL,
                track_assignments=[
                    TrackAssignment(item_id=clips["A"], track_id="video-7", position=0),
                ],
            )
        db.rollback()

        assert get_timeline(db, project.project_id).to_document() == before

    def test_unknown_item(self, db, project, clips):
        with pytest.raises(TimelineItemNotFoundError):
            reorder_timeline_assets(
                db,
                project.project_id,
                ReorderingType.ACROSS_TRACKS,
                TimingMode.SEQUENTIAL,
                track_assignments=[
                    TrackAssignment(item_id="item-ghost", track_id="audio-1", position=0),
                ],
            )

    def test_same_item_twice_rejected(self, db, project, clips):
        with pytest.raises(InvalidReorderError):
            reorder_timeline_assets(
                db,
                project.project_id,
                ReorderingType.ACROSS_TRACKS,
                TimingMode.SEQUENTIAL,
                track_assignments=[
                    TrackAssignment(item_id=clips["A"], track_id="audio-1", position=0),
                    TrackAssignment(item_id=clips["A"], track_id="video-1", position=0),
                ],
            )

    def test_assignments_required(self, db, project, clips):
        with pytest.raises(MissingRequiredFieldError):
            reorder_timeline_assets(
                db,
                project.project_id,
                ReorderingType.ACROSS_TRACKS,
                TimingMode.SEQUENTIAL,
            )


class TestLayouts:
    def test_layout_sequential_law(self, db, project, clips):
        items = get_timeline(db, project.project_id).get_track("video-1").items

        layout_sequential(items, 2)

        assert items[0].start_time == 0
        for previous, current in zip(items, items[1:]):
            assert current.start_time == previous.end_time + 2

    def test_original_gaps_clamp_overlaps_to_zero(self, db, project, clips):
        items = get_timeline(db, project.project_id).get_track("video-1").items
        items[1].start_time = 1
        items[1].end_time = 6

        assert original_gaps(items) == [0, 4]

    def test_layout_with_gaps_falls_back_when_gaps_run_out(self, db, project, clips):
        items = get_timeline(db, project.project_id).get_track("video-1").items

        layout_with_gaps(items, [5], fallback_gap=1)

        assert [(i.start_time, i.end_time) for i in items] == [(0, 2), (7, 12), (13, 16)]
