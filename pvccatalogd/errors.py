#!/usr/bin/env python3

# errors.py - PVC catalog API error codes and response envelopes
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


STATUS_SUCCESS = "success"
STATUS_ERROR = "error"

#
# Error codes
#
E401 = 401
E1001 = 1001
E1002 = 1002
E1003 = 1003
E1004 = 1004
E1005 = 1005
E1006 = 1006
E1007 = 1007
E1008 = 1008

ERROR_MESSAGES = {
    E401: "You are not authorized to access this resource",
    E1001: "Error fetching data from resource",
    E1002: "Error fetching data from resource with provided identifier",
    E1003: "Error creating resource",
    E1004: "Error updating resource with provided identifier",
    E1005: "Error deleting resource with provided identifier",
    E1006: "Unable to find the requested resource with provided identifier",
    E1007: "Validation failed for the provided input",
    E1008: "Error uploading files to resource with provided identifier",
}


#
# Exceptions
#
class ValidationError(Exception):
    """
    An exception that results from some value being un- or mis-defined, or
    from a reference to a row that does not exist.
    """

    def __init__(self, message=None):
        if message is None:
            message = ERROR_MESSAGES[E1007]
        self.message = message
        super().__init__(message)

    def __str__(self):
        return str(self.message)


class PersistenceError(Exception):
    """
    An exception that results from the datastore failing to complete a write.
    """

    pass


#
# Response envelopes
#
def success(**payload):
    response = {"status": STATUS_SUCCESS}
    response.update(payload)
    return response


def failure(code, message=None):
    if message is None:
        message = ERROR_MESSAGES.get(code, "")
    return {"status": STATUS_ERROR, "code": code, "error": message}
