#!/usr/bin/env python3

# flaskapi.py - PVC catalog HTTP API interface
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

import flask

from functools import wraps
from flask_restful import Resource, Api, reqparse

from pvccatalogd.auth import get_policy
from pvccatalogd.entities import entities
from pvccatalogd.errors import E401, failure
from pvccatalogd.log import Logger
from pvccatalogd.store import Datastore
from pvccatalogd.uploads import DiskStorage

import pvccatalogd.catalog as api_catalog


API_VERSION = 1.0

EXTENSION_NAME = "pvccatalogd"


def get_context():
    """
    Return the injected datastore, policy, logger, storage and config of the current app
    """
    return flask.current_app.extensions[EXTENSION_NAME]


#
# Custom decorators
#


# Request parser decorator
class RequestParser(object):
    def __init__(self, reqargs):
        self.reqargs = reqargs

    def __call__(self, function):
        if not callable(function):
            return

        @wraps(function)
        def wrapped_function(*args, **kwargs):
            parser = reqparse.RequestParser()
            # Parse and add each argument
            for reqarg in self.reqargs:
                location = reqarg.get("location", None)
                if location is None:
                    location = ["args"]
                parser.add_argument(
                    reqarg.get("name", None),
                    required=reqarg.get("required", False),
                    action=reqarg.get("action", None),
                    choices=reqarg.get("choices", ()),
                    help=reqarg.get("helptext", None),
                    location=location,
                )
            reqargs = parser.parse_args()
            kwargs["reqargs"] = reqargs
            return function(*args, **kwargs)

        return wrapped_function


# Authentication decorator
class Authenticator(object):
    """
    Check the request against the app's authorization policy for an action

    The acting principal is stored as flask.g.principal for the handlers.
    """

    def __init__(self, action):
        self.action = action

    def __call__(self, function):
        @wraps(function)
        def authenticate(resource, *args, **kwargs):
            context = get_context()
            policy = context["policy"]
            principal = policy.identify(flask.request)
            if not policy.authorize(principal, resource.resource_name, self.action):
                context["logger"].out(
                    "Denied {} on {}".format(self.action, resource.resource_name),
                    state="w",
                    prefix="authorize",
                )
                return failure(E401), 401
            flask.g.principal = principal
            return function(resource, *args, **kwargs)

        return authenticate


# Arguments common to list and single-entity reads
list_reqargs = [
    {"name": "page"},
    {"name": "limit"},
    {"name": "relations"},
]

element_reqargs = [
    {"name": "relations"},
]


##########################################################
# API Root
##########################################################


# /
class API_Root(Resource):
    def get(self):
        """
        Return the PVC catalog API version string
        ---
        tags:
          - root
        responses:
          200:
            description: OK
            schema:
              type: object
              id: API-Version
              properties:
                message:
                  type: string
                  description: A text message
                  example: "PVC catalog API version 1.0"
        """
        return {"message": "PVC catalog API version {}".format(API_VERSION)}


##########################################################
# API Entities
##########################################################


# /<entity>
class API_Entity_Root(Resource):
    def __init__(self, entity_name):
        self.resource_name = entity_name

    @RequestParser(list_reqargs)
    @Authenticator("list")
    def get(self, reqargs):
        """
        Return a page of entities
        ---
        tags:
          - catalog
        parameters:
          - in: query
            name: page
            type: integer
            required: false
            description: Zero-based page number; invalid values are treated as 0
          - in: query
            name: limit
            type: integer
            required: false
            description: Page size; invalid values fall back to the default of 50
          - in: query
            name: relations
            type: boolean
            required: false
            description: Expand reference attributes into the referenced entities
          - in: header
            name: X-API-Fields
            type: string
            required: false
            description: JSON object of attribute names to true, limiting the attributes returned
          - in: header
            name: X-API-Sort
            type: string
            required: false
            description: JSON object of attribute names to "asc" or "desc"
        responses:
          200:
            description: OK
            schema:
              type: object
              id: EntityList
              properties:
                status:
                  type: string
                  description: "success" or "error"
                count:
                  type: integer
                  description: Total number of live entities
                pages:
                  type: integer
                  description: Number of pages at the requested limit
        """
        context = get_context()
        return api_catalog.list_entities(
            context["datastore"],
            context["logger"],
            context["config"],
            self.resource_name,
            reqargs,
            fields_header=flask.request.headers.get("X-API-Fields", None),
            sort_header=flask.request.headers.get("X-API-Sort", None),
        )

    @Authenticator("create")
    def post(self):
        """
        Create a new entity from a JSON body
        ---
        tags:
          - catalog
        parameters:
          - in: body
            name: body
            required: true
            description: Every writable attribute of the entity
        responses:
          200:
            description: OK
            schema:
              type: object
              id: EntityResult
              properties:
                status:
                  type: string
                  description: "success" or "error"
                code:
                  type: integer
                  description: The error code, on error
                error:
                  type: string
                  description: The error message, on error
        """
        context = get_context()
        return api_catalog.create_entity(
            context["datastore"],
            context["logger"],
            context["config"],
            self.resource_name,
            flask.request.get_json(silent=True),
            principal=flask.g.principal,
        )


# /<entity>/<identifier>
class API_Entity_Element(Resource):
    def __init__(self, entity_name):
        self.resource_name = entity_name

    @RequestParser(element_reqargs)
    @Authenticator("get")
    def get(self, identifier, reqargs):
        """
        Return the entity with the given id
        ---
        tags:
          - catalog
        parameters:
          - in: query
            name: relations
            type: boolean
            required: false
          - in: header
            name: X-API-Fields
            type: string
            required: false
        responses:
          200:
            description: OK
            schema:
              type: object
              id: EntityResult
        """
        context = get_context()
        return api_catalog.get_entity_by_id(
            context["datastore"],
            context["logger"],
            context["config"],
            self.resource_name,
            identifier,
            reqargs,
            fields_header=flask.request.headers.get("X-API-Fields", None),
        )

    @Authenticator("update")
    def put(self, identifier):
        """
        Update the attributes present in the JSON body of the entity with the given id
        ---
        tags:
          - catalog
        parameters:
          - in: body
            name: body
            required: false
            description: Any subset of the writable attributes of the entity
        responses:
          200:
            description: OK
            schema:
              type: object
              id: EntityResult
        """
        context = get_context()
        return api_catalog.modify_entity(
            context["datastore"],
            context["logger"],
            context["config"],
            self.resource_name,
            identifier,
            flask.request.get_json(silent=True),
            principal=flask.g.principal,
        )

    @Authenticator("delete")
    def delete(self, identifier):
        """
        Soft-delete the entity with the given id
        ---
        tags:
          - catalog
        responses:
          200:
            description: OK
            schema:
              type: object
              id: EntityResult
        """
        context = get_context()
        return api_catalog.delete_entity(
            context["datastore"],
            context["logger"],
            context["config"],
            self.resource_name,
            identifier,
            principal=flask.g.principal,
        )


# /<entity>/upload/<identifier>
class API_Entity_Upload(Resource):
    def __init__(self, entity_name):
        self.resource_name = entity_name

    @Authenticator("upload")
    def post(self, identifier):
        """
        Upload files for the file attributes of the entity with the given id
        ---
        tags:
          - catalog
        consumes:
          - multipart/form-data
        parameters:
          - in: formData
            name: icon
            type: file
            required: false
            description: A PNG or JPEG image
        responses:
          200:
            description: OK
            schema:
              type: object
              id: UploadResult
              properties:
                status:
                  type: string
                  description: "success" or "error"
                accepted:
                  type: object
                  description: Field name to stored path, for each accepted file
                rejected:
                  type: object
                  description: Field name to reason, for each rejected file
        """
        context = get_context()
        return api_catalog.upload_entity_files(
            context["datastore"],
            context["storage"],
            context["logger"],
            context["config"],
            self.resource_name,
            identifier,
            flask.request.files,
            principal=flask.g.principal,
        )


def register_resources(api):
    api.add_resource(API_Root, "/")

    for name, entity in entities.items():
        api.add_resource(
            API_Entity_Root,
            "/{}".format(name),
            endpoint="{}_root".format(name),
            resource_class_kwargs={"entity_name": name},
        )
        api.add_resource(
            API_Entity_Element,
            "/{}/<identifier>".format(name),
            endpoint="{}_element".format(name),
            resource_class_kwargs={"entity_name": name},
        )
        if entity.uploads:
            api.add_resource(
                API_Entity_Upload,
                "/{}/upload/<identifier>".format(name),
                endpoint="{}_upload".format(name),
                resource_class_kwargs={"entity_name": name},
            )


##########################################################
# Flask App Creation
##########################################################


def create_app(config, datastore=None, policy=None, logger=None, storage=None):
    """
    Create the Flask app with its datastore, authorization policy, logger and upload storage
    """
    # Create Flask app and set config values
    app = flask.Flask(__name__)

    # Set up SQLAlchemy backend
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["SQLALCHEMY_DATABASE_URI"] = config["api_database_uri"]

    if config.get("debug", False):
        app.config["DEBUG"] = True
    else:
        app.config["DEBUG"] = False

    if logger is None:
        logger = Logger(config)
    if datastore is None:
        datastore = Datastore()
    if policy is None:
        policy = get_policy(config)
    if storage is None:
        storage = DiskStorage(config["upload_directory"], logger=logger)

    datastore.db.init_app(app)

    app.extensions[EXTENSION_NAME] = {
        "config": config,
        "datastore": datastore,
        "policy": policy,
        "logger": logger,
        "storage": storage,
    }

    # Create Flask blueprint
    blueprint = flask.Blueprint("api", __name__, url_prefix="/api/v1")

    # Create Flask-RESTful definition
    api = Api(blueprint)
    register_resources(api)
    app.register_blueprint(blueprint)

    # Stored uploads are served read-only
    @app.route("/uploads/<path:stored_path>")
    def serve_upload(stored_path):
        return flask.send_from_directory(storage.upload_directory, stored_path)

    if config.get("api_database_initialize", False):
        with app.app_context():
            datastore.initialize()
        logger.out("Initialized database schema", state="o")

    return app


def shutdown_app(app):
    """
    Release the database connections and close the log of an app from create_app
    """
    context = app.extensions[EXTENSION_NAME]
    with app.app_context():
        context["datastore"].shutdown()
    context["logger"].terminate()
