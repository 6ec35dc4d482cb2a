"""Tests for vibe catalog API endpoints."""

from vibing_storage.domain.vibes import create_vibe, create_vibe_group


def test_list_vibes(client, pool):
    create_vibe("tempo", "slow", pool, create_group=True)
    create_vibe("mood", "chill", pool, create_group=True)

    response = client.get("/api/vibes")

    assert response.status_code == 200
    assert response.json() == [
        {"group_name": "mood", "name": "chill"},
        {"group_name": "tempo", "name": "slow"},
    ]


def test_list_vibe_groups(client, pool):
    create_vibe("mood", "sad", pool, create_group=True)
    create_vibe("mood", "chill", pool)
    create_vibe_group("empty", pool)

    body = client.get("/api/vibe-groups").json()

    assert [(g["name"], g["vibes"]) for g in body] == [
        ("empty", []),
        ("mood", ["chill", "sad"]),
    ]


def test_get_vibe_group(client, pool):
    create_vibe("mood", "chill", pool, create_group=True)

    response = client.get("/api/vibe-groups/mood")

    assert response.status_code == 200
    assert response.json()["vibes"] == ["chill"]


def test_get_missing_vibe_group(client):
    assert client.get("/api/vibe-groups/nope").status_code == 404
