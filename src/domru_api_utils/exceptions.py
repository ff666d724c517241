#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Dom.ru API Exceptions Module

This module defines the exception hierarchy for the Dom.ru smart-home API client.
It provides specific exception classes for authentication failures, malformed input,
missing devices and faults reported by the vendor inside a successful response.

Untranslated HTTP and transport failures are not wrapped: they propagate as
requests.HTTPError / requests.RequestException.

License: MIT
"""

from typing import Optional


class DomruBaseError(Exception):
    """Базовое исключение клиента Dom.ru"""
    def __init__(self, code: str, message: str, remark: str = ""):
        self.code = code
        self.message = message
        self.remark = remark
        super().__init__(f"Code {code}: {message} - {remark}" if remark else f"Code {code}: {message}")


class AuthError(DomruBaseError):
    """Нет авторизации, неверные данные входа или сбой обновления токенов"""
    pass


class ValidationError(DomruBaseError):
    """Некорректные входные данные (например, номер телефона)"""
    pass


class NotFoundError(DomruBaseError):
    """Место, устройство доступа или камера не существуют"""
    pass


class RemoteError(DomruBaseError):
    """Ошибка, которую сервер вернул в поле Error успешного ответа"""
    def __init__(self, code: str, message: str, remark: str = "", camera_id: Optional[int] = None):
        self.camera_id = camera_id
        super().__init__(code, message, remark)
