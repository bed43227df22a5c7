#!/usr/bin/env python3

# uploads.py - PVC catalog API uploaded file storage
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
import secrets
import time

from threading import Thread
from werkzeug.utils import secure_filename


UNSUPPORTED_FORMAT_MESSAGE = "Unsupported file format, please upload a valid file"


class DiskStorage(object):
    """
    Store uploaded files under the upload directory and clean up replaced ones
    """

    def __init__(self, upload_directory, logger=None):
        self.upload_directory = os.path.abspath(upload_directory)
        self.logger = logger

    def generate_name(self, filename):
        extension = os.path.splitext(secure_filename(filename or ""))[1]
        return "{}{}{}".format(
            secrets.token_hex(16), int(time.time() * 1000), extension
        )

    def save(self, folder, upload):
        """
        Write a werkzeug FileStorage into the folder; returns the stored path
        relative to the upload directory (e.g. "catalogs/<name>.png")
        """
        target_directory = os.path.join(self.upload_directory, folder)
        os.makedirs(target_directory, exist_ok=True)
        name = self.generate_name(upload.filename)
        upload.save(os.path.join(target_directory, name))
        return "{}/{}".format(folder, name)

    def resolve(self, stored_path):
        """
        Return the absolute path of a stored file, or None if the path is unsafe
        """
        if not stored_path or stored_path.startswith("."):
            return None
        file_path = os.path.abspath(os.path.join(self.upload_directory, stored_path))
        if not file_path.startswith(self.upload_directory + os.sep):
            return None
        return file_path

    def remove(self, stored_path):
        file_path = self.resolve(stored_path)
        if file_path is None or not os.path.isfile(file_path):
            if self.logger is not None:
                self.logger.out(
                    'Refusing to remove upload "{}"'.format(stored_path), state="w"
                )
            return False
        os.remove(file_path)
        return True

    def clean_up(self, stored_paths):
        """
        Remove each stored path, logging rather than raising any failure
        """
        for stored_path in stored_paths:
            try:
                self.remove(stored_path)
            except OSError as e:
                if self.logger is not None:
                    self.logger.out(
                        'Failed to remove upload "{}": {}'.format(stored_path, e),
                        state="e",
                    )

    def schedule_clean_up(self, stored_paths):
        """
        Remove stored paths in the background; the caller does not wait
        """
        cleanup_thread = Thread(
            target=self.clean_up, args=(list(stored_paths),), daemon=True
        )
        cleanup_thread.start()
        return cleanup_thread


def accepts(upload, mimetypes):
    return upload.mimetype in mimetypes
