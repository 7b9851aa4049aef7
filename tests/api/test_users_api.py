def test_update_profile(auth_client):
    response = auth_client.patch("/api/users/me", json={"display_name": "Bookworm", "timezone": "Asia/Tokyo"})

    assert response.status_code == 200
    assert response.json()["display_name"] == "Bookworm"
    assert response.json()["timezone"] == "Asia/Tokyo"


def test_update_profile_rejects_bad_timezone(auth_client):
    response = auth_client.patch("/api/users/me", json={"timezone": "Nowhere/Special"})
    assert response.status_code == 422


def test_public_profile_and_follow_counts(auth_client, other_user):
    assert auth_client.post(f"/api/follows/{other_user.id}").status_code == 201

    profile = auth_client.get(f"/api/users/{other_user.id}").json()
    assert profile["followers"] == 1
    assert profile["is_following"] is True

    assert auth_client.delete(f"/api/follows/{other_user.id}").status_code == 200
    assert auth_client.delete(f"/api/follows/{other_user.id}").status_code == 404

    profile = auth_client.get(f"/api/users/{other_user.id}").json()
    assert profile["followers"] == 0
    assert profile["is_following"] is False


def test_cannot_follow_self(auth_client, normal_user):
    assert auth_client.post(f"/api/follows/{normal_user.id}").status_code == 400
