from datetime import datetime

from pvccatalogd.errors import E1006, E1007


SMALL = {"name": "Small", "cpus": 2, "ram": 1024, "storage": 10}


def test_size_lifecycle(api):
    created = api.post("/size", SMALL)
    assert created["status"] == "success"
    size_id = created["size"]["id"]
    assert isinstance(size_id, int)

    fetched = api.get("/size/{}".format(size_id))
    assert fetched["status"] == "success"
    for name, value in SMALL.items():
        assert fetched["size"][name] == value

    updated = api.put("/size/{}".format(size_id), {"name": "Large"})
    assert updated["status"] == "success"
    assert updated["size"]["name"] == "Large"

    fetched = api.get("/size/{}".format(size_id))
    assert fetched["size"]["name"] == "Large"
    assert fetched["size"]["cpus"] == 2

    deleted = api.delete("/size/{}".format(size_id))
    assert deleted == {"status": "success"}

    fetched = api.get("/size/{}".format(size_id))
    assert fetched["status"] == "error"
    assert fetched["code"] == E1006


def test_create_size_sets_audit_attributes(api):
    size = api.post("/size", SMALL)["size"]
    assert size["createdAt"] is not None
    assert size["updatedAt"] is not None
    assert size["deletedAt"] is None
    assert size["createdBy"] is None


def test_create_size_requires_every_attribute(api):
    result = api.post("/size", {"name": "Small", "cpus": 2, "ram": 1024})
    assert result == {
        "status": "error",
        "code": E1007,
        "error": "Please provide a valid number for storage",
    }
    assert api.get("/size")["count"] == 0


def test_create_size_first_failure_wins(api):
    result = api.post("/size", {"name": "", "cpus": "many"})
    assert result["code"] == E1007
    assert result["error"] == "Please provide a valid name"


def test_create_size_converts_numeric_strings(api):
    size = api.post("/size", {"name": "Small", "cpus": "4", "ram": 2048, "storage": 20})[
        "size"
    ]
    assert size["cpus"] == 4


def test_create_size_rejects_unknown_attribute(api):
    result = api.post("/size", dict(SMALL, colour="blue"))
    assert result["code"] == E1007
    assert result["error"] == '"colour" is not allowed'


def test_create_size_rejects_null(api):
    result = api.post("/size", dict(SMALL, ram=None))
    assert result["code"] == E1007
    assert result["error"] == "Please provide a valid number for ram"


def test_empty_update_only_touches_audit_attributes(api):
    size = api.post("/size", SMALL)["size"]

    updated = api.put("/size/{}".format(size["id"]), {})
    assert updated["status"] == "success"
    for name in ("id", "name", "cpus", "ram", "storage", "createdAt", "createdBy"):
        assert updated["size"][name] == size[name]
    assert datetime.fromisoformat(updated["size"]["updatedAt"]) >= datetime.fromisoformat(
        size["updatedAt"]
    )


def test_update_validates_present_attributes(api):
    size = api.post("/size", SMALL)["size"]

    result = api.put("/size/{}".format(size["id"]), {"ram": "lots"})
    assert result["code"] == E1007
    assert result["error"] == "Please provide a valid number for ram"
    assert api.get("/size/{}".format(size["id"]))["size"]["ram"] == 1024


def test_update_missing_size(api):
    result = api.put("/size/999", {"name": "Large"})
    assert result["status"] == "error"
    assert result["code"] == E1006


def test_non_numeric_identifier(api):
    result = api.get("/size/abc")
    assert result["code"] == E1007
    assert result["error"] == "Please provide a valid number for sizeId"

    result = api.delete("/size/abc")
    assert result["code"] == E1007


def test_deleted_size_is_hidden(api):
    keep = api.post("/size", SMALL)["size"]
    drop = api.post("/size", dict(SMALL, name="Doomed"))["size"]

    assert api.delete("/size/{}".format(drop["id"]))["status"] == "success"

    listing = api.get("/size")
    assert listing["count"] == 1
    assert [size["id"] for size in listing["sizes"]] == [keep["id"]]

    second = api.delete("/size/{}".format(drop["id"]))
    assert second["status"] == "error"
    assert second["code"] == E1006

    result = api.put("/size/{}".format(drop["id"]), {"name": "Revived"})
    assert result["code"] == E1006


def test_create_size_out_of_range_number(api):
    result = api.post("/size", dict(SMALL, cpus=2**70))
    assert result == {
        "status": "error",
        "code": E1007,
        "error": "Please provide a valid number for cpus",
    }
    assert api.get("/size")["count"] == 0


def test_out_of_range_identifier(api):
    result = api.get("/size/99999999999999999999")
    assert result["code"] == E1007
    assert result["error"] == "Please provide a valid number for sizeId"
