from tests.conftest import auth, incident_payload


def test_report_incident_defaults(client, report):
    body = report("alice")
    assert body["type"] == "roadblock"
    assert body["userId"] == "alice"
    assert body["active"] is True
    assert body["confirmCount"] == 0
    assert body["dismissCount"] == 0
    assert body["mediaType"] == "photo"
    assert body["locationName"] == "John Compton Highway"
    assert body["reportedAt"]


def test_report_requires_auth(client):
    resp = client.post("/api/incidents", json=incident_payload())
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Authentication required"


def test_report_rejects_unknown_type(client):
    resp = client.post("/api/incidents", json=incident_payload(type="pothole"), headers=auth("alice"))
    assert resp.status_code == 400


def test_report_rejects_out_of_range_latitude(client):
    resp = client.post("/api/incidents", json=incident_payload(latitude=123), headers=auth("alice"))
    assert resp.status_code == 400


def test_report_accepts_numeric_strings_and_video(client):
    resp = client.post(
        "/api/incidents",
        json=incident_payload(latitude="13.91", longitude="-60.979", imageUrl="https://x.test/v.mp4"),
        headers=auth("alice"),
    )
    assert resp.status_code == 201
    assert resp.json()["latitude"] == 13.91
    assert resp.json()["mediaType"] == "video"


def test_get_incident_and_404(client, report):
    created = report()
    resp = client.get(f"/api/incidents/{created['id']}")
    assert resp.status_code == 200
    assert resp.json()["id"] == created["id"]

    resp = client.get("/api/incidents/does-not-exist")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Incident not found"


def test_list_active_excludes_deactivated(client, report):
    keep = report()
    gone = report()
    for voter in ("a", "b", "c"):
        client.post(f"/api/incidents/{gone['id']}/verify", json={"action": "dismiss"}, headers=auth(voter))

    ids = [i["id"] for i in client.get("/api/incidents").json()]
    assert keep["id"] in ids
    assert gone["id"] not in ids


def test_user_incidents_include_inactive(client, report):
    mine = report("alice")
    report("bob")
    for voter in ("a", "b", "c"):
        client.post(f"/api/incidents/{mine['id']}/verify", json={"action": "dismiss"}, headers=auth(voter))

    resp = client.get("/api/user/incidents", headers=auth("alice"))
    assert resp.status_code == 200
    body = resp.json()
    assert [i["id"] for i in body] == [mine["id"]]
    assert body[0]["active"] is False


def test_user_incidents_requires_auth(client):
    assert client.get("/api/user/incidents").status_code == 401


def test_nearby_filters_by_radius(client, report):
    near = report(latitude=13.9100, longitude=-60.9790)
    far = report(latitude=14.0101, longitude=-60.9875)

    resp = client.get("/api/incidents/nearby", params={"lat": 13.9094, "lon": -60.9789, "radius": 1000})
    assert resp.status_code == 200
    assert [i["id"] for i in resp.json()] == [near["id"]]

    # Default radius (5 km) still excludes the incident ~11 km away.
    resp = client.get("/api/incidents/nearby", params={"lat": 13.9094, "lon": -60.9789})
    assert [i["id"] for i in resp.json()] == [near["id"]]

    resp = client.get("/api/incidents/nearby", params={"lat": 13.9094, "lon": -60.9789, "radius": 20000})
    assert [i["id"] for i in resp.json()] == [near["id"], far["id"]]


def test_nearby_requires_coordinates(client):
    resp = client.get("/api/incidents/nearby", params={"lat": 13.9})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Latitude and longitude are required"

    assert client.get("/api/incidents/nearby", params={"lat": "x", "lon": "y"}).status_code == 400
    assert client.get("/api/incidents/nearby", params={"lat": 1, "lon": 1, "radius": -5}).status_code == 400


def test_verify_flow(client, report):
    created = report()
    url = f"/api/incidents/{created['id']}/verify"

    resp = client.post(url, json={"action": "confirm"}, headers=auth("a"))
    assert resp.status_code == 200
    body = resp.json()
    assert body["verification"]["action"] == "confirm"
    assert body["verification"]["userId"] == "a"
    assert body["verification"]["incidentId"] == created["id"]
    assert body["incident"]["confirmCount"] == 1

    client.post(url, json={"action": "dismiss"}, headers=auth("b"))
    client.post(url, json={"action": "dismiss"}, headers=auth("c"))
    resp = client.post(url, json={"action": "dismiss"}, headers=auth("d"))
    assert resp.json()["incident"]["dismissCount"] == 3
    assert resp.json()["incident"]["active"] is False

    resp = client.post(url, json={"action": "confirm"}, headers=auth("e"))
    assert resp.json()["incident"]["active"] is False
    assert resp.json()["incident"]["confirmCount"] == 2


def test_verify_duplicate_vote(client, report):
    created = report()
    url = f"/api/incidents/{created['id']}/verify"
    assert client.post(url, json={"action": "dismiss"}, headers=auth("a")).status_code == 200

    resp = client.post(url, json={"action": "dismiss"}, headers=auth("a"))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "You have already verified this incident"
    assert client.get(f"/api/incidents/{created['id']}").json()["dismissCount"] == 1


def test_verify_errors(client, report):
    created = report()
    url = f"/api/incidents/{created['id']}/verify"

    assert client.post(url, json={"action": "dismiss"}).status_code == 401
    assert client.post("/api/incidents/nope/verify", json={"action": "dismiss"}, headers=auth("a")).status_code == 404

    resp = client.post(url, json={"action": "maybe"}, headers=auth("a"))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Action must be 'confirm' or 'dismiss'"

    assert client.post(url, headers=auth("a")).status_code == 400


def test_verify_non_string_action_on_missing_incident_is_404(client):
    resp = client.post("/api/incidents/missing/verify", json={"action": 5}, headers=auth("a"))
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Incident not found"


def test_verify_repeat_voter_with_malformed_action_gets_duplicate_message(client, report):
    created = report()
    url = f"/api/incidents/{created['id']}/verify"
    assert client.post(url, json={"action": "dismiss"}, headers=auth("a")).status_code == 200

    resp = client.post(url, json={"action": ["dismiss"]}, headers=auth("a"))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "You have already verified this incident"

    resp = client.post(url, json={"action": {"kind": "dismiss"}}, headers=auth("b"))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Action must be 'confirm' or 'dismiss'"


def test_verify_storage_failure_is_500_and_changes_nothing(client, report, repository, monkeypatch):
    created = report()

    async def broken_commit(verification, transition):
        raise RuntimeError("backend unavailable")

    monkeypatch.setattr(repository, "commit_verification", broken_commit)

    resp = client.post(f"/api/incidents/{created['id']}/verify", json={"action": "dismiss"}, headers=auth("a"))
    assert resp.status_code == 500
    assert "backend unavailable" in resp.json()["detail"]

    body = client.get(f"/api/incidents/{created['id']}").json()
    assert (body["confirmCount"], body["dismissCount"], body["active"]) == (0, 0, True)


def test_header_user_ids_that_break_vote_keys_are_rejected(client, report):
    created = report()
    url = f"/api/incidents/{created['id']}/verify"

    for bad in ("a__b", "a/b", "../x", "_lead"):
        resp = client.post(url, json={"action": "dismiss"}, headers=auth(bad))
        assert resp.status_code == 401, bad

    assert client.post(url, json={"action": "dismiss"}, headers=auth("user.name@example.com")).status_code == 200
    assert client.get(f"/api/incidents/{created['id']}").json()["dismissCount"] == 1
