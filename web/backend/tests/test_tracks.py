"""Tests for tracks API endpoints."""

from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from vibing_storage.core.exceptions import PersistenceError
from vibing_storage.domain.tracks import TrackMetadata, create_track, get_track_by_id
from vibing_storage.domain.vibes import create_vibe
from web.backend.routers.tracks import to_track_patch
from web.backend.schemas import TrackPatchRequest

MUTAGEN_FILE = "vibing_storage.domain.library.metadata.MutagenFile"


@pytest.fixture
def song(pool, library):
    return create_track(
        TrackMetadata(path=str(library / "Artist - Song.mp3"), title="Song", author="Artist"),
        pool,
    )


@pytest.fixture
def vibes(pool):
    return [
        create_vibe("mood", "chill", pool, create_group=True),
        create_vibe("mood", "hype", pool),
    ]


class TestToTrackPatch:
    """Test mapping request bodies onto domain patches."""

    def test_maps_rating_and_vibes(self):
        patch_ = to_track_patch(
            TrackPatchRequest(
                title="T",
                rating=7,
                add_vibes=[{"group_name": "mood", "name": "chill"}],
            )
        )
        assert patch_.title == "T"
        assert patch_.new_vote == 7
        assert patch_.new_download is False
        assert patch_.add_vibes == [("mood", "chill")]
        assert patch_.remove_vibes == []


class TestListTracks:
    """Test listing endpoints."""

    def test_page(self, client, pool, library):
        for i in range(5):
            create_track(TrackMetadata(path=f"/elsewhere/{i}.mp3", title=f"Track {i}"), pool)

        response = client.get("/api/tracks", params={"page": 2, "size": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["total_items"] == 5
        assert body["total_page"] == 3
        assert [t["title"] for t in body["items"]] == ["Track 2", "Track 3"]

    def test_page_filters(self, client, pool, song, vibes):
        create_track(TrackMetadata(path="/elsewhere/x.mp3", title="Other"), pool)
        client.patch(
            f"/api/tracks/{song.id}",
            json={"add_vibes": [{"group_name": "mood", "name": "chill"}]},
        )

        response = client.get("/api/tracks", params=[("vibes", "chill"), ("vibes", "sad")])

        body = response.json()
        assert [t["id"] for t in body["items"]] == [song.id]
        assert body["items"][0]["vibes"] == [{"group_name": "mood", "name": "chill"}]

    def test_page_empty(self, client):
        body = client.get("/api/tracks").json()
        assert body["items"] == []
        assert body["total_page"] == 0

    def test_invalid_page(self, client):
        assert client.get("/api/tracks", params={"page": 0}).status_code == 422

    def test_all(self, client, song):
        response = client.get("/api/tracks/all")
        assert response.status_code == 200
        assert [t["id"] for t in response.json()] == [song.id]

    def test_get_one(self, client, song):
        body = client.get(f"/api/tracks/{song.id}").json()
        assert body["title"] == "Song"
        assert body["average_rating"] == 0.0
        assert body["vibes"] == []

    def test_get_missing(self, client):
        response = client.get("/api/tracks/999")
        assert response.status_code == 404


class TestUpload:
    """Test registering files as tracks."""

    def test_upload_fills_from_tags(self, client, library):
        audio = Mock()
        tags = {"TIT2": ["Tagged Title"], "TCON": ["Ambient"]}
        audio.get.side_effect = lambda key: tags.get(key)
        audio.info = Mock(length=241.9)

        with patch(MUTAGEN_FILE, return_value=audio):
            response = client.post(
                "/api/tracks/upload",
                json={"path": str(library / "Artist - Song.mp3"), "author": "Given"},
            )

        assert response.status_code == 201
        body = response.json()
        assert body["title"] == "Tagged Title"
        assert body["author"] == "Given"
        assert body["genre"] == "Ambient"
        assert body["duration"] == 241

    def test_upload_twice_conflicts(self, client, library):
        payload = {"path": str(library / "Artist - Song.mp3")}
        with patch(MUTAGEN_FILE, return_value=None):
            assert client.post("/api/tracks/upload", json=payload).status_code == 201
            assert client.post("/api/tracks/upload", json=payload).status_code == 409

    def test_upload_missing_file(self, client, library):
        response = client.post("/api/tracks/upload", json={"path": str(library / "nope.mp3")})
        assert response.status_code == 404

    def test_upload_outside_library(self, client, tmp_path):
        outside = tmp_path / "outside.mp3"
        outside.write_bytes(b"x")
        response = client.post("/api/tracks/upload", json={"path": str(outside)})
        assert response.status_code == 403


class TestPatchAndVote:
    """Test mutation endpoints."""

    def test_patch_fields_and_vibes(self, client, song, vibes):
        response = client.patch(
            f"/api/tracks/{song.id}",
            json={
                "genre": "Lo-fi",
                "rating": 200,
                "add_vibes": [
                    {"group_name": "mood", "name": "chill"},
                    {"group_name": "mood", "name": "hype"},
                ],
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["genre"] == "Lo-fi"
        assert body["average_rating"] == 200.0
        assert {v["name"] for v in body["vibes"]} == {"chill", "hype"}

    def test_patch_unknown_vibe(self, client, song, vibes):
        response = client.patch(
            f"/api/tracks/{song.id}",
            json={"add_vibes": [{"group_name": "mood", "name": "angry"}]},
        )
        assert response.status_code == 404

    def test_patch_rating_out_of_range(self, client, song):
        response = client.patch(f"/api/tracks/{song.id}", json={"rating": 256})
        assert response.status_code == 422

    def test_patch_missing_track(self, client):
        assert client.patch("/api/tracks/999", json={"title": "x"}).status_code == 404

    def test_vote(self, client, pool, song):
        client.post("/api/tracks/vote", json={"track_id": song.id, "rating": 100})
        response = client.post("/api/tracks/vote", json={"track_id": song.id, "rating": 50})

        assert response.status_code == 200
        assert response.json()["average_rating"] == 75.0
        stored = get_track_by_id(song.id, pool).track
        assert (stored.vote_count, stored.total_rating) == (2, 150)

    def test_vote_missing_track(self, client):
        response = client.post("/api/tracks/vote", json={"track_id": 999, "rating": 1})
        assert response.status_code == 404

    def test_persistence_error_is_500(self, client, song):
        with patch(
            "web.backend.routers.tracks.apply_patch",
            side_effect=PersistenceError("disk full"),
        ):
            response = client.post("/api/tracks/vote", json={"track_id": song.id, "rating": 1})
        assert response.status_code == 500
        assert response.json() == {"detail": "Database error"}


class TestDelete:
    """Test deleting tracks."""

    def test_delete_by_id(self, client, song):
        response = client.delete("/api/tracks", params={"id": song.id})
        assert response.status_code == 200
        assert response.json() == {"deleted": song.id}
        assert client.get(f"/api/tracks/{song.id}").status_code == 404

    def test_delete_by_title(self, client, song):
        assert client.delete("/api/tracks", params={"title": "Song"}).status_code == 200
        assert client.get(f"/api/tracks/{song.id}").status_code == 404

    def test_delete_requires_key(self, client):
        assert client.delete("/api/tracks").status_code == 400

    def test_delete_missing(self, client):
        assert client.delete("/api/tracks", params={"title": "Nope"}).status_code == 404


class TestFileEndpoints:
    """Test download and stream."""

    def test_download_records_download(self, client, pool, song):
        response = client.get(f"/api/tracks/{song.id}/download")

        assert response.status_code == 200
        assert response.content == b"ID3fake-audio-bytes"
        assert response.headers["content-type"] == "audio/mpeg"
        assert (
            response.headers["content-disposition"]
            == 'attachment; filename="Artist - Song.mp3"'
        )
        assert get_track_by_id(song.id, pool).track.download_count == 1

    def test_stream_does_not_record(self, client, pool, song):
        response = client.get(f"/api/tracks/{song.id}/stream")

        assert response.status_code == 200
        assert response.content == b"ID3fake-audio-bytes"
        assert response.headers["cache-control"] == "no-cache"
        assert get_track_by_id(song.id, pool).track.download_count == 0

    def test_file_missing_on_disk(self, client, pool, library):
        ghost = create_track(TrackMetadata(path=str(library / "gone.mp3")), pool)
        assert client.get(f"/api/tracks/{ghost.id}/download").status_code == 404
        assert get_track_by_id(ghost.id, pool).track.download_count == 0

    def test_outside_library_blocked(self, client, pool, tmp_path):
        outside = tmp_path / "secret.mp3"
        outside.write_bytes(b"x")
        track = create_track(TrackMetadata(path=str(outside)), pool)

        assert client.get(f"/api/tracks/{track.id}/stream").status_code == 403
        assert client.get(f"/api/tracks/{track.id}/download").status_code == 403

    def test_unknown_track(self, client):
        assert client.get("/api/tracks/999/download").status_code == 404
