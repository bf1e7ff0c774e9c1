import pytest

from client_pulse.errors import ValidationError


def test_add_client_assigns_increasing_ids(services):
    first = services.directory.add_client("A", "a@x.com")
    second = services.directory.add_client("B", "b@x.com", phone="555-0100", notes="VIP")

    assert first.id == 1
    assert second.id > first.id
    assert services.directory.find_client(first.id).email == "a@x.com"
    found = services.directory.find_client(second.id)
    assert found.phone == "555-0100"
    assert found.notes == "VIP"


def test_optional_fields_default_to_empty(services):
    client = services.directory.add_client("A", "a@x.com")
    assert client.phone == ""
    assert client.notes == ""


@pytest.mark.parametrize("email", ["plainaddress", "a@b", "@x.com", "a b@x.com", "a@x.", "a@@x.com"])
def test_add_client_rejects_malformed_email(services, email):
    with pytest.raises(ValidationError):
        services.directory.add_client("A", email)
    assert services.directory.list_clients() == []


@pytest.mark.parametrize("name,email", [(None, "a@x.com"), ("", "a@x.com"), ("A", None), ("A", "")])
def test_add_client_requires_name_and_email(services, name, email):
    with pytest.raises(ValidationError):
        services.directory.add_client(name, email)


def test_list_clients_newest_first(services):
    services.directory.add_client("A", "a@x.com")
    services.directory.add_client("B", "b@x.com")
    assert [c.name for c in services.directory.list_clients()] == ["B", "A"]


def test_find_client_unknown_id(services):
    assert services.directory.find_client(42) is None
    assert services.directory.find_client("not-an-id") is None


def test_add_client_writes_log_entry(services):
    services.directory.add_client("A", "a@x.com")
    entry = services.activity.recent(1)[0]
    assert entry.category == "Client"
    assert entry.detail == "Added client A (a@x.com)"


def test_post_client_endpoint(http):
    response = http.post("/api/clients", json={"name": "A", "email": "a@x.com", "phone": "123"})
    assert response.status_code == 201
    body = response.get_json()
    assert body["id"] == 1
    assert body["phone"] == "123"
    assert body["createdAt"].endswith("Z")

    listing = http.get("/api/clients").get_json()
    assert [c["email"] for c in listing] == ["a@x.com"]


def test_post_client_validation_errors(http):
    response = http.post("/api/clients", json={"name": "A"})
    assert response.status_code == 400
    assert response.get_json()["error"] == "Name and email required"

    response = http.post("/api/clients", json={"name": "A", "email": "nope"})
    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid email format"

    response = http.post("/api/clients", json={"name": ["A"], "email": "a@x.com"})
    assert response.status_code == 400


def test_get_unknown_client_is_404(http):
    response = http.get("/api/clients/99")
    assert response.status_code == 404
    assert response.get_json()["error"] == "Client not found"
