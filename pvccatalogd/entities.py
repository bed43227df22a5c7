#!/usr/bin/env python3

# entities.py - PVC catalog API entity definitions
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

"""
Entity definitions for the catalog API.

Every table exposed by the API is described by one ``Entity`` in the
``entities`` registry, keyed by its route name:

    +----------------+-------------------+------------------+
    | Route name     | Singular key      | Plural key       |
    +----------------+-------------------+------------------+
    | size           | size              | sizes            |
    | oslanguage     | oslanguage        | oslanguages      |
    | osfamily       | osfamily          | osfamilies       |
    | location       | location          | locations        |
    | endpoint       | endpoint          | endpoints        |
    | approvalpolicy | approvalpolicy    | approvalpolicies |
    | ostemplate     | ostemplate        | ostemplates      |
    | catalog        | catalog           | catalogs         |
    +----------------+-------------------+------------------+

The handlers in ``pvccatalogd.catalog`` are generic; anything specific to one
table (its schema, its reference fields, extra write checks, file fields)
lives here.
"""

from datetime import timezone

from pvccatalogd.errors import ValidationError
from pvccatalogd.models import (
    DBSize,
    DBOsLanguage,
    DBOsFamily,
    DBLocation,
    DBEndpoint,
    DBApprovalPolicy,
    DBOsTemplate,
    DBCatalog,
)


# Audit attributes present on every entity, as (JSON name, column name)
AUDIT_ATTRIBUTES = [
    ("createdBy", "created_by"),
    ("updatedBy", "updated_by"),
    ("deletedBy", "deleted_by"),
    ("createdAt", "created_at"),
    ("updatedAt", "updated_at"),
    ("deletedAt", "deleted_at"),
]

# Audit attributes that may be selected or sorted on
SELECTABLE_AUDIT_ATTRIBUTES = ["createdBy", "updatedBy", "createdAt", "updatedAt"]

CATALOG_TYPES = ("Standard", "Custom")

ICON_MIMETYPES = ("image/png", "image/jpeg")


def format_value(value):
    if hasattr(value, "isoformat"):
        # SQLite hands back naive datetimes; everything is stored as UTC
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    return value


class Entity(object):
    """
    Describe one catalog table: its model, envelope keys, attributes and write rules

    attributes is an ordered list of (JSON name, column name) pairs for the
    id and writable attributes. references maps a JSON name to a dict with
    the foreign key "column", the ORM "relation", the referenced "entity"
    route name and the "helptext" reported when the referenced row is absent.
    checks is a list of functions called as check(values, resolved, existing,
    options) after the references resolve and before anything is written.
    """

    def __init__(
        self,
        name,
        title,
        model,
        singular,
        plural,
        attributes,
        schema,
        references=None,
        checks=None,
        uploads=None,
    ):
        self.name = name
        self.title = title
        self.model = model
        self.singular = singular
        self.plural = plural
        self.attributes = attributes
        self.schema = schema
        self.references = references or dict()
        self.checks = checks or list()
        self.uploads = uploads or dict()

    def __repr__(self):
        return "<Entity {}>".format(self.name)

    @property
    def titles(self):
        if self.title.endswith("y"):
            return self.title[:-1] + "ies"
        return self.title + "s"

    @property
    def id_label(self):
        return "{}Id".format(self.name)

    @property
    def selectable(self):
        return [name for name, _ in self.attributes] + SELECTABLE_AUDIT_ATTRIBUTES

    def column_for(self, attribute):
        """
        Return the column name backing a JSON attribute name
        """
        if attribute in self.references:
            return self.references[attribute]["column"]
        for name, column in self.attributes + AUDIT_ATTRIBUTES:
            if name == attribute:
                return column
        raise KeyError(attribute)

    def to_columns(self, values):
        """
        Translate a validated body (JSON names) into model column values
        """
        return {self.column_for(name): value for name, value in values.items()}

    def serialize(self, row, relations=False, fields=None):
        """
        Convert a model row into its JSON representation

        With relations, reference attributes hold the referenced row (itself
        serialized without relations); otherwise they hold the raw id.
        """
        data = dict()
        for name, column in self.attributes + AUDIT_ATTRIBUTES:
            if name in self.references:
                reference = self.references[name]
                if relations:
                    target = getattr(row, reference["relation"])
                    if target is None:
                        data[name] = None
                    else:
                        data[name] = entities[reference["entity"]].serialize(target)
                else:
                    data[name] = getattr(row, reference["column"])
            else:
                data[name] = format_value(getattr(row, column))

        if fields:
            data = {name: value for name, value in data.items() if name in fields}

        return data


#
# Write checks
#
def check_available_network(values, resolved, existing, options):
    """
    Ensure an OS template's availableNetwork belongs to its location

    On create the network is always checked. On update it is checked when it
    is supplied, against the new location if one is also supplied. A location
    change alone only re-checks the stored network when the
    revalidate_network_on_location_change option is set.
    """
    if "location" in resolved:
        location = resolved["location"]
    elif existing is not None:
        location = existing.location
    else:
        location = None

    if "availableNetwork" in values:
        network = values["availableNetwork"]
    elif existing is not None and "location" in resolved:
        if not options.get("revalidate_network_on_location_change", False):
            return
        network = existing.available_network
    else:
        return

    if location is None or network not in (location.available_networks or []):
        raise ValidationError("Provided availableNetwork is not part of location")


#
# Entity registry
#
entities = {
    "size": Entity(
        name="size",
        title="Size",
        model=DBSize,
        singular="size",
        plural="sizes",
        attributes=[
            ("id", "id"),
            ("name", "name"),
            ("cpus", "cpus"),
            ("ram", "ram"),
            ("storage", "storage"),
        ],
        schema=[
            {
                "name": "name",
                "type": "string",
                "required": True,
                "helptext": "Please provide a valid name",
            },
            {
                "name": "cpus",
                "type": "number",
                "required": True,
                "helptext": "Please provide a valid number for cpus",
            },
            {
                "name": "ram",
                "type": "number",
                "required": True,
                "helptext": "Please provide a valid number for ram",
            },
            {
                "name": "storage",
                "type": "number",
                "required": True,
                "helptext": "Please provide a valid number for storage",
            },
        ],
    ),
    "oslanguage": Entity(
        name="oslanguage",
        title="OsLanguage",
        model=DBOsLanguage,
        singular="oslanguage",
        plural="oslanguages",
        attributes=[
            ("id", "id"),
            ("name", "name"),
        ],
        schema=[
            {
                "name": "name",
                "type": "string",
                "required": True,
                "helptext": "Please provide a valid name",
            },
        ],
    ),
    "osfamily": Entity(
        name="osfamily",
        title="OsFamily",
        model=DBOsFamily,
        singular="osfamily",
        plural="osfamilies",
        attributes=[
            ("id", "id"),
            ("name", "name"),
            ("shortName", "short_name"),
        ],
        schema=[
            {
                "name": "name",
                "type": "string",
                "required": True,
                "helptext": "Please provide a valid name",
            },
            {
                "name": "shortName",
                "type": "string",
                "required": True,
                "max_length": 6,
                "helptext": "Please provide a valid shortName",
            },
        ],
    ),
    "location": Entity(
        name="location",
        title="Location",
        model=DBLocation,
        singular="location",
        plural="locations",
        attributes=[
            ("id", "id"),
            ("name", "name"),
            ("availableNetworks", "available_networks"),
        ],
        schema=[
            {
                "name": "name",
                "type": "string",
                "required": True,
                "helptext": "Please provide a valid name",
            },
            {
                "name": "availableNetworks",
                "type": "string_list",
                "required": True,
                "helptext": "Please provide a valid array for availableNetworks",
                "itemtext": "Please provide a valid availableNetworks",
            },
        ],
    ),
    "endpoint": Entity(
        name="endpoint",
        title="Endpoint",
        model=DBEndpoint,
        singular="endpoint",
        plural="endpoints",
        attributes=[
            ("id", "id"),
            ("name", "name"),
            ("shortName", "short_name"),
            ("url", "url"),
            ("username", "username"),
            ("password", "password"),
            ("availableClusters", "available_clusters"),
        ],
        schema=[
            {
                "name": "name",
                "type": "string",
                "required": True,
                "helptext": "Please provide a valid name",
            },
            {
                "name": "shortName",
                "type": "string",
                "required": True,
                "helptext": "Please provide a valid shortName",
            },
            {
                "name": "url",
                "type": "string",
                "required": True,
                "helptext": "Please provide a valid url",
            },
            {
                "name": "username",
                "type": "string",
                "required": True,
                "helptext": "Please provide a valid username",
            },
            {
                "name": "password",
                "type": "string",
                "required": True,
                "helptext": "Please provide a valid password",
            },
            {
                "name": "availableClusters",
                "type": "string_list",
                "required": True,
                "helptext": "Please provide a valid array for availableClusters",
                "itemtext": "Please provide a valid availableClusters",
            },
        ],
    ),
    "approvalpolicy": Entity(
        name="approvalpolicy",
        title="ApprovalPolicy",
        model=DBApprovalPolicy,
        singular="approvalpolicy",
        plural="approvalpolicies",
        attributes=[
            ("id", "id"),
            ("name", "name"),
            ("policies", "policies"),
        ],
        schema=[
            {
                "name": "name",
                "type": "string",
                "required": True,
                "helptext": "Please provide a valid name",
            },
            {
                "name": "policies",
                "type": "object_list",
                "required": True,
                "helptext": "Please provide a valid array for policies",
                "itemtext": "Please provide a valid policies",
                "items": [
                    {
                        "name": "userGroups",
                        "type": "string",
                        "required": True,
                        "helptext": "Please provide a valid userGroups",
                    },
                    {
                        "name": "expiresInDays",
                        "type": "number",
                        "required": True,
                        "helptext": "Please provide a valid number for expiresInDays",
                    },
                    {
                        "name": "defaultAction",
                        "type": "string",
                        "required": True,
                        "helptext": "Please provide a valid defaultAction",
                    },
                ],
            },
        ],
    ),
    "ostemplate": Entity(
        name="ostemplate",
        title="OsTemplate",
        model=DBOsTemplate,
        singular="ostemplate",
        plural="ostemplates",
        attributes=[
            ("id", "id"),
            ("name", "name"),
            ("templateId", "template_id"),
            ("osFamily", "os_family_id"),
            ("location", "location_id"),
            ("availableNetwork", "available_network"),
        ],
        schema=[
            {
                "name": "name",
                "type": "string",
                "required": True,
                "helptext": "Please provide a valid name",
            },
            {
                "name": "templateId",
                "type": "string",
                "required": True,
                "helptext": "Please provide a valid templateId",
            },
            {
                "name": "osFamily",
                "type": "number",
                "required": True,
                "helptext": "Please provide a valid number for osFamily",
            },
            {
                "name": "location",
                "type": "number",
                "required": True,
                "helptext": "Please provide a valid number for location",
            },
            {
                "name": "availableNetwork",
                "type": "string",
                "required": True,
                "helptext": "Please provide a valid availableNetwork",
            },
        ],
        references={
            "osFamily": {
                "column": "os_family_id",
                "relation": "os_family",
                "entity": "osfamily",
                "helptext": "Provided osFamily doesn't exist",
            },
            "location": {
                "column": "location_id",
                "relation": "location",
                "entity": "location",
                "helptext": "Provided location doesn't exist",
            },
        },
        checks=[check_available_network],
    ),
    "catalog": Entity(
        name="catalog",
        title="Catalog",
        model=DBCatalog,
        singular="catalog",
        plural="catalogs",
        attributes=[
            ("id", "id"),
            ("name", "name"),
            ("icon", "icon"),
            ("shortName", "short_name"),
            ("defaultTemplate", "default_template_id"),
            ("defaultApprovalPolicy", "default_approval_policy_id"),
            ("defaultLeasePeriod", "default_lease_period"),
            ("permittedMaxLeaseExtensions", "permitted_max_lease_extensions"),
            ("type", "type"),
        ],
        schema=[
            {
                "name": "name",
                "type": "string",
                "required": True,
                "helptext": "Please provide a valid name",
            },
            {
                "name": "shortName",
                "type": "string",
                "required": True,
                "helptext": "Please provide a valid shortName",
            },
            {
                "name": "defaultTemplate",
                "type": "number",
                "required": True,
                "helptext": "Please provide a valid number for defaultTemplate",
            },
            {
                "name": "defaultApprovalPolicy",
                "type": "number",
                "required": True,
                "helptext": "Please provide a valid number for defaultApprovalPolicy",
            },
            {
                "name": "defaultLeasePeriod",
                "type": "number",
                "required": True,
                "helptext": "Please provide a valid number for defaultLeasePeriod",
            },
            {
                "name": "permittedMaxLeaseExtensions",
                "type": "number",
                "required": True,
                "helptext": "Please provide a valid number for permittedMaxLeaseExtensions",
            },
            {
                "name": "type",
                "type": "choice",
                "required": True,
                "choices": CATALOG_TYPES,
                "helptext": "Please provide a valid string for type",
            },
        ],
        references={
            "defaultTemplate": {
                "column": "default_template_id",
                "relation": "default_template",
                "entity": "ostemplate",
                "helptext": "Provided defaultTemplate doesn't exist",
            },
            "defaultApprovalPolicy": {
                "column": "default_approval_policy_id",
                "relation": "default_approval_policy",
                "entity": "approvalpolicy",
                "helptext": "Provided defaultApprovalPolicy doesn't exist",
            },
        },
        uploads={
            "icon": {
                "folder": "catalogs",
                "column": "icon",
                "mimetypes": ICON_MIMETYPES,
            },
        },
    ),
}


def get_entity(name):
    return entities[name]
