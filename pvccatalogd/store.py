#!/usr/bin/env python3

# store.py - PVC catalog API datastore functions
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

from sqlalchemy.exc import SQLAlchemyError

from pvccatalogd.entities import entities
from pvccatalogd.errors import PersistenceError
from pvccatalogd.models import db, utcnow


class EntityStore(object):
    """
    Persistence for a single entity; soft-deleted rows are invisible to every read
    """

    def __init__(self, datastore, entity):
        self.datastore = datastore
        self.entity = entity
        self.model = entity.model

    @property
    def session(self):
        return self.datastore.db.session

    def _live(self):
        return self.model.deleted_at.is_(None)

    def _conditions(self, filter=None):
        conditions = [self._live()]
        if filter:
            for attribute, value in filter.items():
                column = getattr(self.model, self.entity.column_for(attribute))
                conditions.append(column == value)
        return conditions

    def find_many(
        self, filter=None, projection=None, sort=None, skip=0, limit=50, relations=False
    ):
        """
        Return a page of serialized rows and the total count of live rows

        filter maps attribute names to values the rows must equal.
        """
        conditions = self._conditions(filter)
        query = db.select(self.model).where(*conditions)
        if sort:
            for attribute, direction in sort.items():
                column = getattr(self.model, self.entity.column_for(attribute))
                if direction == "desc":
                    query = query.order_by(column.desc())
                else:
                    query = query.order_by(column.asc())
        query = query.offset(skip).limit(limit)

        count_query = (
            db.select(db.func.count()).select_from(self.model).where(*conditions)
        )

        rows = self.session.execute(query).unique().scalars().all()
        count = self.session.execute(count_query).scalar()

        return [
            self.entity.serialize(row, relations=relations, fields=projection)
            for row in rows
        ], count

    def get(self, row_id):
        """
        Return the live model row with the given id, or None
        """
        query = db.select(self.model).where(self.model.id == row_id, self._live())
        return self.session.execute(query).unique().scalars().first()

    def find_one(self, row_id, projection=None, relations=False):
        """
        Return the serialized live row with the given id, or None
        """
        row = self.get(row_id)
        if row is None:
            return None
        return self.entity.serialize(row, relations=relations, fields=projection)

    def insert(self, columns):
        """
        Insert a new row and return it with its generated id and timestamps
        """
        row = self.model(**columns)
        try:
            self.session.add(row)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError(str(e)) from e
        self.session.refresh(row)
        return row

    def update_fields(self, row_id, columns):
        """
        Overwrite the given columns of a live row in one statement; returns the affected count
        """
        columns = dict(columns)
        columns.setdefault("updated_at", utcnow())
        statement = (
            db.update(self.model)
            .where(self.model.id == row_id, self._live())
            .values(**columns)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.execute(statement)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError(str(e)) from e
        return result.rowcount

    def soft_delete(self, row_id):
        """
        Mark a live row as deleted; returns the affected count
        """
        statement = (
            db.update(self.model)
            .where(self.model.id == row_id, self._live())
            .values(deleted_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.execute(statement)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError(str(e)) from e
        return result.rowcount


class Datastore(object):
    """
    The catalog datastore, handing out one EntityStore per entity

    The datastore is created once per process and passed to the Flask app;
    initialize() and shutdown() must run inside an application context.
    """

    def __init__(self, database=db):
        self.db = database
        self.stores = {
            name: EntityStore(self, entity) for name, entity in entities.items()
        }

    def store(self, name):
        return self.stores[name]

    def initialize(self):
        self.db.create_all()

    def shutdown(self):
        self.db.session.remove()
        self.db.engine.dispose()
