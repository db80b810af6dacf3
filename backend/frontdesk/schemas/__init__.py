"""Pydantic schemas for the Frontdesk page API and the remote hotel API."""

from frontdesk.schemas.base import *
from frontdesk.schemas.room import *
from frontdesk.schemas.user import *
from frontdesk.schemas.booking import *
from frontdesk.schemas.stay_record import *
