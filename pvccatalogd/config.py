#!/usr/bin/env python3

# config.py - Utility functions for pvccatalogd configuration parsing
# Part of the Parallel Virtual Cluster (PVC) system
#
#    Copyright (C) 2018-2024 Joshua M. Boniface <joshua@boniface.me>
#
#    This program is free software: you can redistribute it and/or modify
#    it under the terms of the GNU General Public License as published by
#    the Free Software Foundation, version 3.
#
#    This program is distributed in the hope that it will be useful,
#    but WITHOUT ANY WARRANTY; without even the implied warranty of
#    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#    GNU General Public License for more details.
#
#    You should have received a copy of the GNU General Public License
#    along with this program.  If not, see <https://www.gnu.org/licenses/>.
#
###############################################################################

import os
import yaml


DEFAULT_PAGE_LIMIT = 50


class MalformedConfigurationError(Exception):
    """
    An except when parsing the PVC catalog API daemon configuration file
    """

    def __init__(self, error=None):
        self.msg = f"ERROR: Configuration file is malformed: {error}"

    def __str__(self):
        return str(self.msg)


def get_configuration_path():
    try:
        _config_file = os.environ["PVC_CATALOG_CONFIG_FILE"]
        if not os.path.exists(_config_file):
            raise FileNotFoundError(_config_file)
        config_file = _config_file
    except Exception:
        print('ERROR: The "PVC_CATALOG_CONFIG_FILE" environment variable must be set.')
        os._exit(1)

    return config_file


def get_database_uri(config):
    """
    Build the SQLAlchemy database URI from the PostgreSQL settings
    """
    return "postgresql+psycopg2://{}:{}@{}:{}/{}".format(
        config["api_postgresql_user"],
        config["api_postgresql_password"],
        config["api_postgresql_host"],
        config["api_postgresql_port"],
        config["api_postgresql_dbname"],
    )


def parse_configuration(o_config):
    """
    Flatten a loaded configuration document into the daemon config dict
    """
    config = dict()

    try:
        o_path = o_config["path"]
        config_path = {
            "upload_directory": o_path["upload_directory"],
            "log_directory": o_path.get("log_directory", "/var/log/pvc"),
        }
        config = {**config, **config_path}

        o_database = o_config["database"]
        if o_database.get("uri"):
            config_database = {
                "api_database_uri": o_database["uri"],
            }
        else:
            config_database = {
                "api_postgresql_port": o_database["postgres"]["port"],
                "api_postgresql_host": o_database["postgres"]["hostname"],
                "api_postgresql_dbname": o_database["postgres"]["credentials"][
                    "database"
                ],
                "api_postgresql_user": o_database["postgres"]["credentials"][
                    "username"
                ],
                "api_postgresql_password": o_database["postgres"]["credentials"][
                    "password"
                ],
            }
            config_database["api_database_uri"] = get_database_uri(config_database)
        config_database["api_database_initialize"] = o_database.get(
            "initialize", False
        )
        config = {**config, **config_database}

        o_logging = o_config.get("logging", {})
        config_logging = {
            "debug": o_logging.get("debug_logging", False),
            "file_logging": o_logging.get("file_logging", False),
            "stdout_logging": o_logging.get("stdout_logging", True),
            "log_colours": o_logging.get("log_colours", False),
            "log_dates": o_logging.get("log_dates", False),
        }
        config = {**config, **config_logging}

        o_catalog = o_config.get("catalog", {})
        config_catalog = {
            "revalidate_network_on_location_change": o_catalog.get(
                "revalidate_network_on_location_change", False
            ),
            "default_page_limit": int(
                o_catalog.get("default_page_limit", DEFAULT_PAGE_LIMIT)
            ),
        }
        config = {**config, **config_catalog}

        o_api = o_config["api"]

        o_api_listen = o_api["listen"]
        config_api_listen = {
            "api_listen_address": o_api_listen["address"],
            "api_listen_port": int(o_api_listen["port"]),
        }
        config = {**config, **config_api_listen}

        o_api_authentication = o_api.get("authentication", {})
        config_api_authentication = {
            "api_auth_enabled": o_api_authentication.get("enabled", False),
            "api_auth_source": o_api_authentication.get("source", "token"),
        }
        config = {**config, **config_api_authentication}

        o_api_ssl = o_api.get("ssl", {})
        config_api_ssl = {
            "api_ssl_enabled": o_api_ssl.get("enabled", False),
            "api_ssl_cert_file": o_api_ssl.get("certificate", None),
            "api_ssl_key_file": o_api_ssl.get("private_key", None),
        }
        config = {**config, **config_api_ssl}

        # Set up our token list if specified
        if config["api_auth_source"] == "token":
            config["api_auth_tokens"] = o_api.get("token", [])
        else:
            config["api_auth_tokens"] = []
            if config["api_auth_enabled"]:
                print(
                    "WARNING: No authentication method provided; disabling API authentication."
                )
                config["api_auth_enabled"] = False

    except Exception as e:
        raise MalformedConfigurationError(e)

    return config


def get_parsed_configuration(config_file):
    print('Loading configuration from file "{}"'.format(config_file))

    with open(config_file, "r") as cfgfh:
        try:
            o_config = yaml.load(cfgfh, Loader=yaml.SafeLoader)
        except Exception as e:
            print(f"ERROR: Failed to parse configuration file: {e}")
            os._exit(1)

    return parse_configuration(o_config)


def get_configuration():
    """
    Get the configuration.
    """
    pvc_config_file = get_configuration_path()
    config = get_parsed_configuration(pvc_config_file)
    return config


def validate_directories(config):
    if not os.path.exists(config["upload_directory"]):
        os.makedirs(config["upload_directory"])
    if config["file_logging"] and not os.path.exists(config["log_directory"]):
        os.makedirs(config["log_directory"])
