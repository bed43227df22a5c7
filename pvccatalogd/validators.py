#!/usr/bin/env python3

# validators.py - PVC catalog API input validation functions
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

import json
import re

from pvccatalogd.errors import ValidationError


SORT_DIRECTIONS = ("asc", "desc")

# Range of the store's Integer columns
INTEGER_MIN = -(2**31)
INTEGER_MAX = 2**31 - 1

re_integer = re.compile(r"^\s*-?\d+\s*$")


#
# Value checks
#
# Each check takes the raw value and its argument definition, and returns the
# cleaned value or raises ValidationError with the argument's helptext.
#
def _fail(argument, text=None):
    if text is None:
        text = argument.get("helptext", None)
    if text is None:
        text = "Please provide a valid {}".format(argument["name"])
    raise ValidationError(text)


def check_string(value, argument):
    if not isinstance(value, str) or value == "":
        _fail(argument)
    max_length = argument.get("max_length", None)
    if max_length is not None and len(value) > max_length:
        _fail(argument)
    return value


def check_number(value, argument):
    # bool is an int subclass, but never a valid number here
    if isinstance(value, bool):
        _fail(argument)
    if isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str) and re_integer.match(value):
        number = int(value)
    else:
        _fail(argument)
    if not argument.get("min", INTEGER_MIN) <= number <= argument.get("max", INTEGER_MAX):
        _fail(argument)
    return number


def check_choice(value, argument):
    if not isinstance(value, str) or value not in argument.get("choices", ()):
        _fail(argument)
    return value


def check_string_list(value, argument):
    if not isinstance(value, list):
        _fail(argument)
    for item in value:
        if not isinstance(item, str) or item == "":
            _fail(argument, argument.get("itemtext", None))
    return list(value)


def check_object_list(value, argument):
    if not isinstance(value, list):
        _fail(argument)
    items = list()
    for item in value:
        if not isinstance(item, dict):
            _fail(argument, argument.get("itemtext", None))
        items.append(validate_arguments(argument["items"], item))
    return items


value_checks = {
    "string": check_string,
    "number": check_number,
    "choice": check_choice,
    "string_list": check_string_list,
    "object_list": check_object_list,
}


def validate_arguments(schema, data, partial=False):
    """
    Validate a request body against a list of argument definitions

    Each argument is a dict with a "name", a "type" (one of the value_checks
    keys), an optional "required" flag and an optional "helptext" used as the
    error message. When partial is True, required arguments may be absent.

    Returns a dict containing only the arguments that were provided, with
    their cleaned values; raises ValidationError on the first failure.
    """
    if data is None:
        data = dict()
    if not isinstance(data, dict):
        raise ValidationError("Please provide a valid request body")

    cleaned = dict()
    for argument in schema:
        name = argument["name"]
        if name not in data:
            if argument.get("required", False) and not partial:
                _fail(argument)
            continue
        check = value_checks[argument.get("type", "string")]
        cleaned[name] = check(data[name], argument)

    known_names = [argument["name"] for argument in schema]
    for name in data:
        if name not in known_names:
            raise ValidationError('"{}" is not allowed'.format(name))

    return cleaned


#
# Query and header checks
#
def parse_identifier(value, label):
    """
    Parse a numeric path identifier
    """
    if isinstance(value, int) and not isinstance(value, bool):
        identifier = value
    elif isinstance(value, str) and re_integer.match(value):
        identifier = int(value)
    else:
        identifier = None
    if identifier is not None and INTEGER_MIN <= identifier <= INTEGER_MAX:
        return identifier
    raise ValidationError("Please provide a valid number for {}".format(label))


def parse_flag(value, name):
    """
    Parse an optional boolean query flag; absent means False
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if str(value).strip().lower() == "true":
        return True
    if str(value).strip().lower() == "false":
        return False
    raise ValidationError("Please provide a valid {}".format(name))


def parse_page(value):
    """
    Normalize the page query argument; anything unusable becomes page 0
    """
    try:
        page = int(value)
    except (TypeError, ValueError):
        return 0
    if page < 0:
        return 0
    # Pages past the Integer range are past the last page anyway
    return min(page, INTEGER_MAX)


def parse_limit(value, default_limit=50):
    """
    Normalize the limit query argument; anything unusable becomes the default limit
    """
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return default_limit
    if limit < 1:
        return default_limit
    return min(limit, INTEGER_MAX)


def parse_header_map(raw_value, header):
    """
    Load a JSON object passed in a request header (X-API-Fields, X-API-Sort)
    """
    if raw_value is None or raw_value.strip() == "":
        return dict()
    try:
        value = json.loads(raw_value)
    except ValueError:
        raise ValidationError("Please provide a valid {} header".format(header))
    if not isinstance(value, dict):
        raise ValidationError("Please provide a valid {} header".format(header))
    return value


def validate_fields(fields, allowed):
    """
    Check a field-selection map; every entry must be a known attribute set to true
    """
    for name, enabled in fields.items():
        if name not in allowed:
            raise ValidationError('"{}" is not allowed'.format(name))
        if enabled is not True:
            raise ValidationError(
                "Please provide a valid field option for {}".format(name)
            )
    return fields


def validate_sort(sort, allowed):
    """
    Check a sort map; every entry must be a known attribute set to asc or desc
    """
    for name, direction in sort.items():
        if name not in allowed:
            raise ValidationError('"{}" is not allowed'.format(name))
        if direction not in SORT_DIRECTIONS:
            raise ValidationError(
                "Please provide a valid sort option for {}".format(name)
            )
    return sort
