from meetpost.db import models


def test_defaults_created_lazily(client, auth, count_rows):
    assert count_rows(models.UserSettings) == 0
    resp = client.get("/settings", headers=auth)
    assert resp.status_code == 200
    assert resp.json()["settings"] == {
        "botJoinMinutesBefore": 5,
        "emailNotifications": True,
        "socialMediaNotifications": True,
    }
    assert count_rows(models.UserSettings) == 1


def test_partial_update(client, auth):
    resp = client.post("/settings", json={"botJoinMinutesBefore": 10, "emailNotifications": False}, headers=auth)
    assert resp.status_code == 200
    assert resp.json()["settings"] == {
        "botJoinMinutesBefore": 10,
        "emailNotifications": False,
        "socialMediaNotifications": True,
    }


def test_join_minutes_out_of_range(client, auth):
    for minutes in (-1, 61):
        resp = client.post("/settings", json={"botJoinMinutesBefore": minutes}, headers=auth)
        assert resp.status_code == 400
    assert client.get("/settings", headers=auth).json()["settings"]["botJoinMinutesBefore"] == 5
