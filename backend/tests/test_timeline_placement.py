import pytest
from uuid import uuid4

from models.timeline_models import PlacementOverlay, TimelineData, TrackType
from operators.project_operator import create_project
from operators.timeline_editor import find_or_create_track, format_seconds, place_asset_on_timeline
from operators.timeline_operator import (
    AssetMismatchError,
    AssetNotFoundError,
    InvalidRangeError,
    ProjectNotFoundError,
    get_timeline,
)


def test_format_seconds():
    assert format_seconds(5.0) == "5"
    assert format_seconds(2.5) == "2.5"
    assert format_seconds(0) == "0"


class TestPlaceAsset:
    def test_first_placement_uses_default_skeleton(self, db, project, make_asset):
        asset = make_asset(name="intro.mp4", duration=8)

        result = place_asset_on_timeline(
            db, project.project_id, str(asset.asset_id), start_time=0, track_type=TrackType.VIDEO
        )

        assert result.track_id == "video-1"
        assert result.timeline_item_id.startswith("item-")
        assert result.message == 'Successfully placed "intro.mp4" on Video 1 from 0s to 8s'

        timeline = get_timeline(db, project.project_id)
        item = timeline.tracks[0].items[0]
        assert item.id == result.timeline_item_id
        assert (item.start_time, item.end_time) == (0, 8)
        assert (item.asset_start_time, item.asset_end_time) == (0, 8)
        assert item.name == "intro.mp4"
        assert item.metadata == {"duration": 8}
        assert timeline.duration == 8
        assert [t.id for t in timeline.tracks] == ["video-1", "audio-1"]

    def test_missing_duration_falls_back_to_ten_seconds(self, db, project, make_asset):
        asset = make_asset(duration=None)

        place_asset_on_timeline(
            db, project.project_id, str(asset.asset_id), start_time=2, track_type=TrackType.VIDEO
        )

        item = get_timeline(db, project.project_id).tracks[0].items[0]
        assert (item.start_time, item.end_time) == (2, 12)

    def test_explicit_end_and_trim(self, db, project, make_asset):
        asset = make_asset(name="song.mp3", asset_type="audio", duration=60)

        result = place_asset_on_timeline(
            db,
            project.project_id,
            str(asset.asset_id),
            start_time=1,
            track_type=TrackType.AUDIO,
            asset_start_time=5,
            asset_end_time=15,
        )

        assert result.track_id == "audio-1"
        assert result.message == (
            'Successfully placed "song.mp3" on Audio 1 from 1s to 11s (trimmed from 5s to 15s)'
        )

    def test_overlay_annotation(self, db, project, make_asset):
        asset = make_asset(name="logo.png", asset_type="image", duration=None)

        result = place_asset_on_timeline(
            db,
            project.project_id,
            str(asset.asset_id),
            start_time=0,
            end_time=3,
            track_type=TrackType.VIDEO,
            overlay=PlacementOverlay(x=10, y=20, width=100, height=50),
        )

        assert result.message.endswith("from 0s to 3s with overlay positioning (10, 20)")
        item = get_timeline(db, project.project_id).tracks[0].items[0]
        assert item.overlay.width == 100
        assert item.overlay.z_index is None

    def test_conflict_creates_new_track(self, db, project, make_asset):
        asset = make_asset(duration=10)
        place_asset_on_timeline(
            db, project.project_id, str(asset.asset_id), start_time=0, track_type=TrackType.VIDEO
        )

        result = place_asset_on_timeline(
            db, project.project_id, str(asset.asset_id), start_time=5, track_type=TrackType.VIDEO
        )

        assert result.track_id == "video-2"
        assert "on Video 2" in result.message
        timeline = get_timeline(db, project.project_id)
        assert [t.id for t in timeline.tracks] == ["video-1", "audio-1", "video-2"]
        assert timeline.duration == 15

    def test_touching_clip_shares_track(self, db, project, make_asset):
        asset = make_asset(duration=10)
        place_asset_on_timeline(
            db, project.project_id, str(asset.asset_id), start_time=0, track_type=TrackType.VIDEO
        )

        result = place_asset_on_timeline(
            db, project.project_id, str(asset.asset_id), start_time=10, track_type=TrackType.VIDEO
        )

        assert result.track_id == "video-1"

    def test_preferred_track_index(self, db, project, make_asset):
        asset = make_asset(duration=4)
        place_asset_on_timeline(
            db, project.project_id, str(asset.asset_id), start_time=0, track_type=TrackType.VIDEO
        )
        place_asset_on_timeline(
            db, project.project_id, str(asset.asset_id), start_time=0, track_type=TrackType.VIDEO
        )

        result = place_asset_on_timeline(
            db,
            project.project_id,
            str(asset.asset_id),
            start_time=10,
            track_type=TrackType.VIDEO,
            track_index=2,
        )

        assert result.track_id == "video-2"

    def test_busy_preferred_track_falls_back_to_first_fit(self, db, project, make_asset):
        asset = make_asset(duration=4)
        place_asset_on_timeline(
            db, project.project_id, str(asset.asset_id), start_time=0, track_type=TrackType.VIDEO
        )
        place_asset_on_timeline(
            db, project.project_id, str(asset.asset_id), start_time=0, track_type=TrackType.VIDEO
        )

        result = place_asset_on_timeline(
            db,
            project.project_id,
            str(asset.asset_id),
            start_time=2,
            track_type=TrackType.VIDEO,
            track_index=2,
        )

        assert result.track_id == "video-3"

    def test_placed_items_never_overlap_on_a_track(self, db, project, make_asset):
        asset = make_asset(duration=3)
        for start in (0, 1, 2, 3, 4, 2.5):
            place_asset_on_timeline(
                db, project.project_id, str(asset.asset_id), start_time=start, track_type=TrackType.VIDEO
            )

        timeline = get_timeline(db, project.project_id)
        for track in timeline.tracks:
            assert track.overlapping_pairs() == []


class TestPlacementValidation:
    def test_negative_start_rejected(self, db, project, make_asset):
        asset = make_asset()

        with pytest.raises(InvalidRangeError, match="Start time cannot be negative"):
            place_asset_on_timeline(
                db, project.project_id, str(asset.asset_id), start_time=-1, track_type=TrackType.VIDEO
            )

    def test_volume_upper_bound_is_inclusive(self, db, project, make_asset):
        asset = make_asset(asset_type="audio")

        result = place_asset_on_timeline(
            db,
            project.project_id,
            str(asset.asset_id),
            start_time=0,
            track_type=TrackType.AUDIO,
            volume=2.0,
        )
        assert result.track_id == "audio-1"

        with pytest.raises(InvalidRangeError, match="Volume"):
            place_asset_on_timeline(
                db,
                project.project_id,
                str(asset.asset_id),
                start_time=20,
                track_type=TrackType.AUDIO,
                volume=2.01,
            )

    def test_opacity_out_of_range(self, db, project, make_asset):
        asset = make_asset()

        with pytest.raises(InvalidRangeError, match="Opacity"):
            place_asset_on_timeline(
                db,
                project.project_id,
                str(asset.asset_id),
                start_time=0,
                track_type=TrackType.VIDEO,
                opacity=1.5,
            )

    def test_end_before_start_rejected(self, db, project, make_asset):
        asset = make_asset()

        with pytest.raises(InvalidRangeError, match="End time must be greater"):
            place_asset_on_timeline(
                db,
                project.project_id,
                str(asset.asset_id),
                start_time=5,
                end_time=5,
                track_type=TrackType.VIDEO,
            )

    def test_inverted_trim_rejected(self, db, project, make_asset):
        asset = make_asset()

        with pytest.raises(InvalidRangeError, match="Asset end time"):
            place_asset_on_timeline(
                db,
                project.project_id,
                str(asset.asset_id),
                start_time=0,
                end_time=5,
                track_type=TrackType.VIDEO,
                asset_start_time=4,
                asset_end_time=2,
            )

    def test_failed_validation_leaves_timeline_untouched(self, db, project, make_asset):
        asset = make_asset()

        with pytest.raises(InvalidRangeError):
            place_asset_on_timeline(
                db, project.project_id, str(asset.asset_id), start_time=-1, track_type=TrackType.VIDEO
            )
        db.rollback()

        db.refresh(project)
        assert project.timeline_data is None

    def test_unknown_asset(self, db, project):
        with pytest.raises(AssetNotFoundError):
            place_asset_on_timeline(
                db, project.project_id, str(uuid4()), start_time=0, track_type=TrackType.VIDEO
            )

    def test_malformed_asset_id(self, db, project):
        with pytest.raises(AssetNotFoundError):
            place_asset_on_timeline(
                db, project.project_id, "not-a-uuid", start_time=0, track_type=TrackType.VIDEO
            )

    def test_asset_from_another_project(self, db, project, make_asset):
        other = create_project("Other", db)
        asset = make_asset(target_project=other)

        with pytest.raises(AssetMismatchError, match="Asset does not belong to this project"):
            place_asset_on_timeline(
                db, project.project_id, str(asset.asset_id), start_time=0, track_type=TrackType.VIDEO
            )

    def test_unknown_project(self, db):
        with pytest.raises(ProjectNotFoundError):
            place_asset_on_timeline(
                db, uuid4(), str(uuid4()), start_time=0, track_type=TrackType.VIDEO
            )


def test_find_or_create_track_appends_after_existing_type_count():
    timeline = TimelineData.create_default()
    timeline.add_track(TrackType.AUDIO)

    assert find_or_create_track(timeline, TrackType.AUDIO, 0, 1).id == "audio-1"

    track = find_or_create_track(timeline, TrackType.VIDEO, 0, 1, preferred_index=7)
    assert track.id == "video-1"
    assert len(timeline.tracks) == 3