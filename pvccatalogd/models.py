#!/usr/bin/env python3

# models.py - PVC catalog API database models
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

from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.dialects.postgresql import JSONB


db = SQLAlchemy()

# List-valued columns; JSONB on PostgreSQL so they can be ordered
JSONList = db.JSON().with_variant(JSONB(), "postgresql")


def utcnow():
    return datetime.now(timezone.utc)


class AuditMixin(object):
    """
    Columns common to every catalog table; a row is soft-deleted once deleted_at is set
    """

    created_by = db.Column(db.Text, nullable=True)
    updated_by = db.Column(db.Text, nullable=True)
    deleted_by = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return "<{} id {}>".format(self.__tablename__, self.id)


class DBSize(AuditMixin, db.Model):
    __tablename__ = "size"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.Text, nullable=False)
    cpus = db.Column(db.Integer, nullable=False)
    ram = db.Column(db.Integer, nullable=False)
    storage = db.Column(db.Integer, nullable=False)

    def __init__(self, name, cpus, ram, storage, created_by=None, updated_by=None):
        self.name = name
        self.cpus = cpus
        self.ram = ram
        self.storage = storage
        self.created_by = created_by
        self.updated_by = updated_by


class DBOsLanguage(AuditMixin, db.Model):
    __tablename__ = "os_language"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.Text, nullable=False)

    def __init__(self, name, created_by=None, updated_by=None):
        self.name = name
        self.created_by = created_by
        self.updated_by = updated_by


class DBOsFamily(AuditMixin, db.Model):
    __tablename__ = "os_family"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.Text, nullable=False)
    short_name = db.Column(db.String(6), nullable=False)

    def __init__(self, name, short_name, created_by=None, updated_by=None):
        self.name = name
        self.short_name = short_name
        self.created_by = created_by
        self.updated_by = updated_by


class DBLocation(AuditMixin, db.Model):
    __tablename__ = "location"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.Text, nullable=False)
    available_networks = db.Column(JSONList, nullable=False)

    def __init__(self, name, available_networks, created_by=None, updated_by=None):
        self.name = name
        self.available_networks = available_networks
        self.created_by = created_by
        self.updated_by = updated_by


class DBEndpoint(AuditMixin, db.Model):
    __tablename__ = "endpoint"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.Text, nullable=False)
    short_name = db.Column(db.Text, nullable=False)
    url = db.Column(db.Text, nullable=False)
    username = db.Column(db.Text, nullable=False)
    password = db.Column(db.Text, nullable=False)
    available_clusters = db.Column(JSONList, nullable=False)

    def __init__(
        self,
        name,
        short_name,
        url,
        username,
        password,
        available_clusters,
        created_by=None,
        updated_by=None,
    ):
        self.name = name
        self.short_name = short_name
        self.url = url
        self.username = username
        self.password = password
        self.available_clusters = available_clusters
        self.created_by = created_by
        self.updated_by = updated_by


class DBApprovalPolicy(AuditMixin, db.Model):
    __tablename__ = "approval_policy"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.Text, nullable=False)
    policies = db.Column(JSONList, nullable=False)

    def __init__(self, name, policies, created_by=None, updated_by=None):
        self.name = name
        self.policies = policies
        self.created_by = created_by
        self.updated_by = updated_by


class DBOsTemplate(AuditMixin, db.Model):
    __tablename__ = "os_template"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.Text, nullable=False)
    template_id = db.Column(db.Text, nullable=False)
    os_family_id = db.Column(db.Integer, db.ForeignKey("os_family.id"), nullable=False)
    location_id = db.Column(db.Integer, db.ForeignKey("location.id"), nullable=False)
    available_network = db.Column(db.Text, nullable=False)

    os_family = db.relationship("DBOsFamily", lazy="joined")
    location = db.relationship("DBLocation", lazy="joined")

    def __init__(
        self,
        name,
        template_id,
        os_family_id,
        location_id,
        available_network,
        created_by=None,
        updated_by=None,
    ):
        self.name = name
        self.template_id = template_id
        self.os_family_id = os_family_id
        self.location_id = location_id
        self.available_network = available_network
        self.created_by = created_by
        self.updated_by = updated_by


class DBCatalog(AuditMixin, db.Model):
    __tablename__ = "catalog"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.Text, nullable=False)
    icon = db.Column(db.Text, nullable=True)
    short_name = db.Column(db.Text, nullable=False)
    default_template_id = db.Column(
        db.Integer, db.ForeignKey("os_template.id"), nullable=False
    )
    default_approval_policy_id = db.Column(
        db.Integer, db.ForeignKey("approval_policy.id"), nullable=False
    )
    default_lease_period = db.Column(db.Integer, nullable=False)
    permitted_max_lease_extensions = db.Column(db.Integer, nullable=False)
    type = db.Column(db.Text, nullable=False)

    default_template = db.relationship("DBOsTemplate", lazy="joined")
    default_approval_policy = db.relationship("DBApprovalPolicy", lazy="joined")

    def __init__(
        self,
        name,
        short_name,
        default_template_id,
        default_approval_policy_id,
        default_lease_period,
        permitted_max_lease_extensions,
        type,
        icon=None,
        created_by=None,
        updated_by=None,
    ):
        self.name = name
        self.short_name = short_name
        self.default_template_id = default_template_id
        self.default_approval_policy_id = default_approval_policy_id
        self.default_lease_period = default_lease_period
        self.permitted_max_lease_extensions = permitted_max_lease_extensions
        self.type = type
        self.icon = icon
        self.created_by = created_by
        self.updated_by = updated_by
