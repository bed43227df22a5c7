#!/usr/bin/env python3

# auth.py - PVC catalog API authorization policies
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


class Policy(object):
    """
    Base authorization policy

    identify() maps a request to the acting principal (or None), and
    authorize() decides whether that principal may perform an action
    ("list", "get", "create", "update", "delete", "upload") on a resource.
    """

    def identify(self, request):
        return None

    def authorize(self, principal, resource, action):
        raise NotImplementedError


class AllowAllPolicy(Policy):
    """
    Permit every caller; the principal is always None
    """

    def authorize(self, principal, resource, action):
        return True


class TokenPolicy(Policy):
    """
    Permit callers presenting a configured X-Api-Key token
    """

    def __init__(self, tokens):
        self.tokens = tokens or list()

    def identify(self, request):
        key = request.headers.get("X-Api-Key", None)
        if not key:
            return None
        for token in self.tokens:
            if key == token.get("token"):
                return str(token.get("id", token.get("description", "")))
        return None

    def authorize(self, principal, resource, action):
        return principal is not None


def get_policy(config):
    if config.get("api_auth_enabled", False):
        return TokenPolicy(config.get("api_auth_tokens", []))
    return AllowAllPolicy()
