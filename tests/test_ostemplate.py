import pytest

from pvccatalogd.errors import E1007
from pvccatalogd.flaskapi import create_app, shutdown_app


def template_body(family, place, **overrides):
    body = {
        "name": "Debian 12",
        "templateId": "/dc1/vm/templates/debian12",
        "osFamily": family["id"],
        "location": place["id"],
        "availableNetwork": "/dc1/network/a",
    }
    body.update(overrides)
    return body


def test_create_template_returns_relations(api, osfamily, location):
    result = api.post("/ostemplate", template_body(osfamily, location))
    assert result["status"] == "success"
    template = result["ostemplate"]
    assert template["osFamily"]["id"] == osfamily["id"]
    assert template["osFamily"]["shortName"] == "lnx"
    assert template["location"]["availableNetworks"] == location["availableNetworks"]


def test_get_template_relations_flag(api, ostemplate, osfamily, location):
    plain = api.get("/ostemplate/{}".format(ostemplate["id"]))["ostemplate"]
    assert plain["osFamily"] == osfamily["id"]
    assert plain["location"] == location["id"]

    expanded = api.get(
        "/ostemplate/{}".format(ostemplate["id"]), query_string={"relations": "true"}
    )["ostemplate"]
    assert expanded["osFamily"]["name"] == "Linux"
    assert expanded["location"]["name"] == "Datacenter 1"


def test_invalid_relations_flag(api, ostemplate):
    result = api.get("/ostemplate", query_string={"relations": "maybe"})
    assert result["code"] == E1007
    assert result["error"] == "Please provide a valid relations"


@pytest.mark.parametrize(
    "attribute,message",
    [
        ("osFamily", "Provided osFamily doesn't exist"),
        ("location", "Provided location doesn't exist"),
    ],
)
def test_create_template_missing_reference(api, osfamily, location, attribute, message):
    body = template_body(osfamily, location, **{attribute: 999})
    result = api.post("/ostemplate", body)
    assert result == {"status": "error", "code": E1007, "error": message}
    assert api.get("/ostemplate")["count"] == 0


def test_create_template_deleted_reference(api, osfamily, location):
    api.delete("/osfamily/{}".format(osfamily["id"]))
    result = api.post("/ostemplate", template_body(osfamily, location))
    assert result["error"] == "Provided osFamily doesn't exist"


def test_update_template_missing_reference(api, ostemplate, location):
    result = api.put("/ostemplate/{}".format(ostemplate["id"]), {"location": 999})
    assert result["code"] == E1007
    assert result["error"] == "Provided location doesn't exist"

    current = api.get("/ostemplate/{}".format(ostemplate["id"]))["ostemplate"]
    assert current["location"] == location["id"]
    assert current["updatedAt"] == ostemplate["updatedAt"]


def test_create_template_network_outside_location(api, osfamily, location):
    body = template_body(osfamily, location, availableNetwork="/dc2/network/z")
    result = api.post("/ostemplate", body)
    assert result == {
        "status": "error",
        "code": E1007,
        "error": "Provided availableNetwork is not part of location",
    }
    assert api.get("/ostemplate")["count"] == 0


def test_create_template_network_inside_location(api, osfamily, location):
    body = template_body(osfamily, location, availableNetwork="/dc1/network/b")
    result = api.post("/ostemplate", body)
    assert result["status"] == "success"
    assert result["ostemplate"]["availableNetwork"] == "/dc1/network/b"


def test_update_template_network_checked_against_stored_location(api, ostemplate):
    path = "/ostemplate/{}".format(ostemplate["id"])

    result = api.put(path, {"availableNetwork": "/dc2/network/z"})
    assert result["error"] == "Provided availableNetwork is not part of location"

    result = api.put(path, {"availableNetwork": "/dc1/network/b"})
    assert result["status"] == "success"
    assert result["ostemplate"]["availableNetwork"] == "/dc1/network/b"


def test_update_template_network_checked_against_new_location(api, ostemplate):
    other = api.post(
        "/location", {"name": "Datacenter 2", "availableNetworks": ["/dc2/network/z"]}
    )["location"]
    path = "/ostemplate/{}".format(ostemplate["id"])

    result = api.put(path, {"location": other["id"], "availableNetwork": "/dc1/network/a"})
    assert result["error"] == "Provided availableNetwork is not part of location"

    result = api.put(path, {"location": other["id"], "availableNetwork": "/dc2/network/z"})
    assert result["status"] == "success"
    assert result["ostemplate"]["location"]["id"] == other["id"]


def test_location_change_keeps_stored_network_by_default(api, ostemplate):
    other = api.post(
        "/location", {"name": "Datacenter 2", "availableNetworks": ["/dc2/network/z"]}
    )["location"]

    result = api.put("/ostemplate/{}".format(ostemplate["id"]), {"location": other["id"]})
    assert result["status"] == "success"
    assert result["ostemplate"]["availableNetwork"] == "/dc1/network/a"


def test_location_change_revalidates_network_when_enabled(config):
    app = create_app(dict(config, revalidate_network_on_location_change=True))
    client = app.test_client()
    try:
        location = client.post(
            "/api/v1/location",
            json={"name": "Datacenter 1", "availableNetworks": ["/dc1/network/a"]},
        ).get_json()["location"]
        other = client.post(
            "/api/v1/location",
            json={"name": "Datacenter 2", "availableNetworks": ["/dc2/network/z"]},
        ).get_json()["location"]
        osfamily = client.post(
            "/api/v1/osfamily", json={"name": "Linux", "shortName": "lnx"}
        ).get_json()["osfamily"]
        template = client.post(
            "/api/v1/ostemplate", json=template_body(osfamily, location)
        ).get_json()["ostemplate"]

        result = client.put(
            "/api/v1/ostemplate/{}".format(template["id"]),
            json={"location": other["id"]},
        ).get_json()
        assert result["code"] == E1007
        assert result["error"] == "Provided availableNetwork is not part of location"
    finally:
        shutdown_app(app)


def test_osfamily_short_name_length(api):
    result = api.post("/osfamily", {"name": "Windows", "shortName": "windows"})
    assert result["code"] == E1007
    assert result["error"] == "Please provide a valid shortName"
