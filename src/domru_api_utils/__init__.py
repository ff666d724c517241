#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Dom.ru API Utils Package

This package provides a Python client for the ER-Telecom "Dom.ru" smart-home
platform. It covers the phone + SMS login flow, automatic token refresh,
subscriber places, profile and finances, Forpost security cameras and
access-control devices (doors and gates).

Main Components:
- SessionClient: API client with request signing and token refresh
- Credentials / LoginDetails: authentication value objects
- AccessControlHandle: one door or gate, resolvable and openable
- CameraHandle: one camera, with snapshot and live stream access

License: MIT
Version: 0.1.0
"""

__version__ = '0.1.0'
__license__ = 'MIT'

# Основные модули
from .client import SessionClient, RefreshNotifier
from .oauth import Credentials, LoginDetails, validate_phone, DEFAULT_BASE_URL
from .access_control import AccessControlHandle
from .camera import CameraHandle, SnapshotStream
from .exceptions import (
    DomruBaseError,
    AuthError,
    ValidationError,
    NotFoundError,
    RemoteError,
)

# Публичный интерфейс
__all__ = [
    'SessionClient',
    'RefreshNotifier',
    'Credentials',
    'LoginDetails',
    'validate_phone',
    'DEFAULT_BASE_URL',
    'AccessControlHandle',
    'CameraHandle',
    'SnapshotStream',
    'DomruBaseError',
    'AuthError',
    'ValidationError',
    'NotFoundError',
    'RemoteError',
]
