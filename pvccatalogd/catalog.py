#!/usr/bin/env python3

# catalog.py - PVC catalog API resource functions
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

import math

from pvccatalogd.entities import get_entity
from pvccatalogd.errors import (
    E1001,
    E1002,
    E1003,
    E1004,
    E1005,
    E1006,
    E1007,
    E1008,
    ValidationError,
    success,
    failure,
)
from pvccatalogd.uploads import UNSUPPORTED_FORMAT_MESSAGE, accepts
from pvccatalogd.validators import (
    validate_arguments,
    validate_fields,
    validate_sort,
    parse_header_map,
    parse_identifier,
    parse_flag,
    parse_page,
    parse_limit,
)


#
# Common functions
#
def resolve_references(datastore, entity, values):
    """
    Look up every reference supplied in values; all must exist before any write
    """
    resolved = dict()
    for attribute, reference in entity.references.items():
        if attribute not in values:
            continue
        target = datastore.store(reference["entity"]).get(values[attribute])
        if target is None:
            raise ValidationError(reference["helptext"])
        resolved[attribute] = target
    return resolved


def run_write_checks(datastore, entity, values, existing, config):
    resolved = resolve_references(datastore, entity, values)
    for check in entity.checks:
        check(values, resolved, existing, config)
    return resolved


def invalid(logger, operation, error):
    logger.out(str(error), state="i", prefix=operation)
    return failure(E1007, error.message), 200


#
# List functions
#
def list_entities(datastore, logger, config, name, reqargs, fields_header=None, sort_header=None):
    """
    Obtain a page of entities, with the total count and number of pages
    """
    entity = get_entity(name)
    operation = "fetchAll{}".format(entity.titles)

    try:
        relations = parse_flag(reqargs.get("relations", None), "relations")
        fields = validate_fields(
            parse_header_map(fields_header, "X-API-Fields"), entity.selectable
        )
        sort = validate_sort(
            parse_header_map(sort_header, "X-API-Sort"), entity.selectable
        )
    except ValidationError as e:
        return invalid(logger, operation, e)

    page = parse_page(reqargs.get("page", None))
    limit = parse_limit(
        reqargs.get("limit", None), config.get("default_page_limit", 50)
    )

    try:
        rows, count = datastore.store(name).find_many(
            projection=fields,
            sort=sort,
            skip=page * limit,
            limit=limit,
            relations=relations,
        )
    except Exception as e:
        logger.out(str(e), state="e", prefix=operation)
        return failure(E1001), 200

    retmsg = success(count=count, pages=math.ceil(count / limit))
    retmsg[entity.plural] = rows
    return retmsg, 200


def get_entity_by_id(datastore, logger, config, name, identifier, reqargs, fields_header=None):
    """
    Obtain a single entity by its id
    """
    entity = get_entity(name)
    operation = "fetch{}".format(entity.title)

    try:
        row_id = parse_identifier(identifier, entity.id_label)
        relations = parse_flag(reqargs.get("relations", None), "relations")
        fields = validate_fields(
            parse_header_map(fields_header, "X-API-Fields"), entity.selectable
        )
    except ValidationError as e:
        return invalid(logger, operation, e)

    try:
        row = datastore.store(name).find_one(
            row_id, projection=fields, relations=relations
        )
    except Exception as e:
        logger.out(str(e), state="e", prefix=operation)
        return failure(E1002), 200

    if row is None:
        return failure(E1006), 200

    return success(**{entity.singular: row}), 200


#
# Create functions
#
def create_entity(datastore, logger, config, name, body, principal=None):
    """
    Create a new entity after validating its body and references

    The response carries the referenced rows in full rather than their ids.
    """
    entity = get_entity(name)
    operation = "create{}".format(entity.title)
    store = datastore.store(name)

    try:
        values = validate_arguments(entity.schema, body)
    except ValidationError as e:
        return invalid(logger, operation, e)

    try:
        run_write_checks(datastore, entity, values, None, config)
        columns = entity.to_columns(values)
        columns["created_by"] = principal
        columns["updated_by"] = principal
        row = store.insert(columns)
        created = entity.serialize(row, relations=True)
    except ValidationError as e:
        return invalid(logger, operation, e)
    except Exception as e:
        logger.out(str(e), state="e", prefix=operation)
        return failure(E1003), 200

    logger.out(
        "Added new {} {}".format(entity.name, created["id"]), state="d", prefix=operation
    )
    return success(**{entity.singular: created}), 200


#
# Modify functions
#
def modify_entity(datastore, logger, config, name, identifier, body, principal=None):
    """
    Update the attributes present in body; absent attributes are left unchanged
    """
    entity = get_entity(name)
    operation = "update{}".format(entity.title)
    store = datastore.store(name)

    try:
        row_id = parse_identifier(identifier, entity.id_label)
        values = validate_arguments(entity.schema, body, partial=True)
    except ValidationError as e:
        return invalid(logger, operation, e)

    try:
        existing = store.get(row_id)
        if existing is None:
            return failure(E1006), 200

        run_write_checks(datastore, entity, values, existing, config)
        columns = entity.to_columns(values)
        columns["updated_by"] = principal
        if store.update_fields(row_id, columns) < 1:
            return failure(E1006), 200

        row = store.get(row_id)
        if row is None:
            return failure(E1006), 200
        updated = entity.serialize(row, relations=True)
    except ValidationError as e:
        return invalid(logger, operation, e)
    except Exception as e:
        logger.out(str(e), state="e", prefix=operation)
        return failure(E1004), 200

    return success(**{entity.singular: updated}), 200


#
# Delete functions
#
def delete_entity(datastore, logger, config, name, identifier, principal=None):
    """
    Soft-delete an entity, recording who deleted it first
    """
    entity = get_entity(name)
    operation = "delete{}".format(entity.title)
    store = datastore.store(name)

    try:
        row_id = parse_identifier(identifier, entity.id_label)
    except ValidationError as e:
        return invalid(logger, operation, e)

    try:
        if store.get(row_id) is None:
            return failure(E1006), 200
        store.update_fields(row_id, {"deleted_by": principal})
        affected = store.soft_delete(row_id)
    except Exception as e:
        logger.out(str(e), state="e", prefix=operation)
        return failure(E1005), 200

    if affected > 0:
        return success(), 200
    return failure(E1006), 200


#
# Upload functions
#
def upload_entity_files(datastore, storage, logger, config, name, identifier, files, principal=None):
    """
    Store uploaded files for an entity's file fields

    Accepted files replace the stored reference; the replaced file is only
    removed (in the background) once the new reference has been saved.
    Rejected files are reported alongside accepted ones.
    """
    entity = get_entity(name)
    operation = "upload{}Files".format(entity.title)
    store = datastore.store(name)

    try:
        row_id = parse_identifier(identifier, entity.id_label)
    except ValidationError as e:
        return invalid(logger, operation, e)

    accepted = dict()
    rejected = dict()
    columns = dict()
    saved = list()
    to_clean_up = list()

    try:
        existing = store.get(row_id)
        if existing is None:
            return failure(E1006), 200

        for field in files.keys():
            if field not in entity.uploads:
                rejected[field] = "Unexpected field"

        for field, definition in entity.uploads.items():
            uploads = files.getlist(field)
            if not uploads:
                continue
            upload = uploads[0]
            if not accepts(upload, definition["mimetypes"]):
                rejected[field] = UNSUPPORTED_FORMAT_MESSAGE
                continue
            stored_path = storage.save(definition["folder"], upload)
            saved.append(stored_path)
            current_value = getattr(existing, definition["column"])
            if current_value:
                to_clean_up.append(str(current_value))
            columns[definition["column"]] = stored_path
            accepted[field] = stored_path

        if columns:
            columns["updated_by"] = principal
            if store.update_fields(row_id, columns) < 1:
                storage.clean_up(saved)
                return failure(E1006), 200
    except Exception as e:
        logger.out(str(e), state="e", prefix=operation)
        storage.clean_up(saved)
        return failure(E1008), 200

    if to_clean_up:
        storage.schedule_clean_up(to_clean_up)

    return success(accepted=accepted, rejected=rejected), 200
