import pytest

from pvccatalogd.flaskapi import create_app, shutdown_app


@pytest.fixture
def config(tmp_path):
    upload_directory = tmp_path / "uploads"
    upload_directory.mkdir()
    return {
        "upload_directory": str(upload_directory),
        "log_directory": str(tmp_path),
        "api_database_uri": "sqlite:///{}".format(tmp_path / "catalog.db"),
        "api_database_initialize": True,
        "debug": True,
        "file_logging": False,
        "stdout_logging": False,
        "log_colours": False,
        "log_dates": False,
        "revalidate_network_on_location_change": False,
        "default_page_limit": 50,
        "api_listen_address": "127.0.0.1",
        "api_listen_port": 7380,
        "api_auth_enabled": False,
        "api_auth_source": "token",
        "api_auth_tokens": [],
        "api_ssl_enabled": False,
        "api_ssl_cert_file": None,
        "api_ssl_key_file": None,
    }


@pytest.fixture
def app(config):
    app = create_app(config)
    app.config["TESTING"] = True
    yield app
    shutdown_app(app)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def api(client):
    """
    Thin helpers over the test client returning decoded JSON bodies
    """

    class Api(object):
        def get(self, path, **kwargs):
            response = client.get("/api/v1" + path, **kwargs)
            assert response.status_code == 200
            return response.get_json()

        def post(self, path, body):
            response = client.post("/api/v1" + path, json=body)
            assert response.status_code == 200
            return response.get_json()

        def put(self, path, body):
            response = client.put("/api/v1" + path, json=body)
            assert response.status_code == 200
            return response.get_json()

        def delete(self, path):
            response = client.delete("/api/v1" + path)
            assert response.status_code == 200
            return response.get_json()

    return Api()


@pytest.fixture
def location(api):
    return api.post(
        "/location",
        {"name": "Datacenter 1", "availableNetworks": ["/dc1/network/a", "/dc1/network/b"]},
    )["location"]


@pytest.fixture
def osfamily(api):
    return api.post("/osfamily", {"name": "Linux", "shortName": "lnx"})["osfamily"]


@pytest.fixture
def ostemplate(api, location, osfamily):
    return api.post(
        "/ostemplate",
        {
            "name": "Debian 12",
            "templateId": "/dc1/vm/templates/debian12",
            "osFamily": osfamily["id"],
            "location": location["id"],
            "availableNetwork": "/dc1/network/a",
        },
    )["ostemplate"]


@pytest.fixture
def approvalpolicy(api):
    return api.post(
        "/approvalpolicy",
        {
            "name": "Default",
            "policies": [
                {"userGroups": "admins", "expiresInDays": 30, "defaultAction": "approve"}
            ],
        },
    )["approvalpolicy"]


@pytest.fixture
def catalog(api, ostemplate, approvalpolicy):
    return api.post(
        "/catalog",
        {
            "name": "Debian server",
            "shortName": "deb",
            "defaultTemplate": ostemplate["id"],
            "defaultApprovalPolicy": approvalpolicy["id"],
            "defaultLeasePeriod": 30,
            "permittedMaxLeaseExtensions": 2,
            "type": "Standard",
        },
    )["catalog"]
