import pytest

from pvccatalogd.entities import entities
from pvccatalogd.errors import E1006, E1007


ENDPOINT = {
    "name": "vCenter",
    "shortName": "vc1",
    "url": "https://vcenter.example.com/sdk",
    "username": "svc-catalog",
    "password": "secret",
    "availableClusters": ["/dc1/host/cluster-a", "/dc1/host/cluster-b"],
}

POLICY = {
    "name": "Default",
    "policies": [
        {"userGroups": "admins", "expiresInDays": 30, "defaultAction": "approve"},
        {"userGroups": "users", "expiresInDays": "7", "defaultAction": "deny"},
    ],
}

# Valid create bodies for the entities without references
BODIES = {
    "size": {"name": "Small", "cpus": 2, "ram": 1024, "storage": 10},
    "oslanguage": {"name": "English"},
    "osfamily": {"name": "Linux", "shortName": "lnx"},
    "location": {"name": "Datacenter 1", "availableNetworks": ["/dc1/network/a"]},
    "endpoint": ENDPOINT,
    "approvalpolicy": POLICY,
}


def test_registry_envelope_keys():
    assert entities["osfamily"].plural == "osfamilies"
    assert entities["approvalpolicy"].plural == "approvalpolicies"
    assert entities["ostemplate"].titles == "OsTemplates"
    assert entities["approvalpolicy"].titles == "ApprovalPolicies"


@pytest.mark.parametrize("name", sorted(BODIES))
def test_round_trip(api, name):
    entity = entities[name]
    created = api.post("/{}".format(name), BODIES[name])
    assert created["status"] == "success"
    row_id = created[entity.singular]["id"]

    fetched = api.get("/{}/{}".format(name, row_id))[entity.singular]
    for attribute, value in BODIES[name].items():
        if attribute == "policies":
            continue
        assert fetched[attribute] == value

    listing = api.get("/{}".format(name))
    assert listing["count"] == 1
    assert listing[entity.plural][0]["id"] == row_id


@pytest.mark.parametrize("name", sorted(BODIES))
def test_delete_missing(api, name):
    result = api.delete("/{}/12345".format(name))
    assert result == {
        "status": "error",
        "code": E1006,
        "error": "Unable to find the requested resource with provided identifier",
    }


def test_approval_policy_converts_nested_numbers(api):
    policy = api.post("/approvalpolicy", POLICY)["approvalpolicy"]
    assert policy["policies"][1]["expiresInDays"] == 7


@pytest.mark.parametrize(
    "policies,message",
    [
        ("approve", "Please provide a valid array for policies"),
        (["approve"], "Please provide a valid policies"),
        (
            [{"userGroups": "admins", "defaultAction": "approve"}],
            "Please provide a valid number for expiresInDays",
        ),
        (
            [
                {
                    "userGroups": "admins",
                    "expiresInDays": 1,
                    "defaultAction": "approve",
                    "priority": 1,
                }
            ],
            '"priority" is not allowed',
        ),
    ],
)
def test_approval_policy_validation(api, policies, message):
    result = api.post("/approvalpolicy", {"name": "Broken", "policies": policies})
    assert result == {"status": "error", "code": E1007, "error": message}


@pytest.mark.parametrize(
    "networks,message",
    [
        ("/dc1/network/a", "Please provide a valid array for availableNetworks"),
        (["/dc1/network/a", 4], "Please provide a valid availableNetworks"),
        (["/dc1/network/a", ""], "Please provide a valid availableNetworks"),
    ],
)
def test_location_validation(api, networks, message):
    result = api.post("/location", {"name": "Datacenter", "availableNetworks": networks})
    assert result["code"] == E1007
    assert result["error"] == message


def test_endpoint_partial_update(api):
    endpoint = api.post("/endpoint", ENDPOINT)["endpoint"]

    result = api.put(
        "/endpoint/{}".format(endpoint["id"]), {"availableClusters": ["/dc2/host/c"]}
    )
    assert result["status"] == "success"
    assert result["endpoint"]["availableClusters"] == ["/dc2/host/c"]
    assert result["endpoint"]["url"] == ENDPOINT["url"]


def test_request_body_must_be_an_object(client):
    response = client.post("/api/v1/oslanguage", json=["English"])
    assert response.get_json() == {
        "status": "error",
        "code": E1007,
        "error": "Please provide a valid request body",
    }


def test_missing_body(client):
    response = client.post("/api/v1/oslanguage")
    assert response.get_json()["error"] == "Please provide a valid name"


def test_api_root(client):
    response = client.get("/api/v1/")
    assert response.status_code == 200
    assert response.get_json() == {"message": "PVC catalog API version 1.0"}
