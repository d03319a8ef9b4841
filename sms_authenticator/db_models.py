# SPDX-License-Identifier: GPL-3.0-only
"""Peewee Database Models."""

import datetime

from peewee import CharField, DateTimeField, Model, TextField

from sms_authenticator.db import connect

database = connect()


class AuthNote(Model):
    """One string-keyed note scoped to an authentication flow."""

    flow_id = CharField(max_length=128)
    name = CharField(max_length=64)
    value = TextField()
    date_created = DateTimeField(default=datetime.datetime.now)

    class Meta:
        database = database
        table_name = "auth_notes"
        indexes = ((("flow_id", "name"), True),)
