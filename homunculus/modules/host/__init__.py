"""
Host Module - Black Box Interface

Purpose: Talk to the Homunculus host with plain JSON request/response calls
Interface: create_url(), get(), post(), put(), patch(), delete()
Hidden: Client lifetime, timeouts, status and transport error translation
"""

from .errors import (
    HomunculusApiError,
    HomunculusCancelledError,
    HomunculusError,
    HomunculusStreamError,
    HomunculusTransportError,
)
from .host import client_scope, create_url, delete, get, patch, post, put, raise_for_status, request

__all__ = [
    "HomunculusError",
    "HomunculusApiError",
    "HomunculusStreamError",
    "HomunculusCancelledError",
    "HomunculusTransportError",
    "client_scope",
    "create_url",
    "raise_for_status",
    "request",
    "get",
    "post",
    "put",
    "patch",
    "delete",
]
