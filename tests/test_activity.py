from datetime import timedelta


def test_append_assigns_increasing_ids_and_timestamps(services, clock):
    first = services.activity.append("System", "boot")
    clock.advance(5)
    second = services.activity.append("Email", "sent")

    assert second.id > first.id
    assert second.timestamp - first.timestamp == timedelta(seconds=5)
    assert [e.detail for e in services.activity.recent()] == ["sent", "boot"]


def test_recent_is_capped_and_newest_first(services):
    for i in range(1200):
        services.activity.append("System", f"event {i}")

    entries = services.activity.recent(200)
    assert len(entries) == 200
    assert entries[0].detail == "event 1199"
    assert entries[-1].detail == "event 1000"
    ids = [e.id for e in entries]
    assert ids == sorted(ids, reverse=True)

    assert len(services.activity.recent(5000)) == 200
    assert len(services.activity.recent(3)) == 3
    assert len(services.activity.all()) == 1200


def test_logs_endpoint(http, services):
    for i in range(250):
        services.activity.append("System", f"event {i}")

    body = http.get("/api/logs").get_json()
    assert len(body) == 200
    assert body[0]["detail"] == "event 249"
    assert body[0]["type"] == "System"
    assert body[0]["time"].endswith("Z")

    assert len(http.get("/api/logs?limit=10").get_json()) == 10
    assert http.get("/api/logs?limit=abc").status_code == 400


def test_export_snapshot(http, services, clock):
    client = services.directory.add_client("A", "a@x.com")
    services.reminders.add_reminder(client.id, clock.now(), "Hi")

    body = http.get("/api/export").get_json()

    assert [c["id"] for c in body["clients"]] == [client.id]
    assert [r["clientId"] for r in body["reminders"]] == [client.id]
    assert [e["type"] for e in body["logs"]] == ["Reminder", "Client"]

    # reading the snapshot changes nothing
    assert http.get("/api/export").get_json() == body


def test_health_routes(http):
    assert http.get("/").get_json()["status"] == "healthy"
    response = http.get("/api/db-health-check")
    assert response.status_code == 200
    assert response.get_json()["database"] == "connected"
