#!/usr/bin/env python3

# pvccatalogd-manage-flask.py - PVC catalog database management tasks (via Flask CLI)
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

from pvccatalogd.Daemon import get_config
from pvccatalogd.flaskapi import create_app
from pvccatalogd.models import *  # noqa F401,F403

from flask_migrate import Migrate

app = create_app(get_config())
migrate = Migrate(app, db)  # noqa F405

# Call flask --app /usr/share/pvc/pvccatalogd-manage-flask.py db upgrade
