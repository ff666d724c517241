#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Dom.ru API OAuth Module

This module provides the unauthenticated part of the Dom.ru API: the operator
catalog, the phone + SMS login flow and the session refresh call. It also holds
the value objects that flow through authentication (LoginDetails, Credentials).

The login flow is:
    1. get_login_details(phone)            -> candidate accounts for the phone
    2. send_confirmation(login_details)    -> vendor sends an SMS code
    3. login_confirmation(details, code)   -> token bundle

License: MIT
"""

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Union, cast

import requests

from .exceptions import AuthError, DomruBaseError, NotFoundError, ValidationError
from .types import LoginDetailsResponse, Operator, OperatorsResponse, TokenBundle

logger = logging.getLogger(__name__)

# 1. Константы (Constants)
DEFAULT_BASE_URL = "https://api-mh.ertelecom.ru"
DEFAULT_TIMEOUT = 30

# Ведущие цифры федерального номера: 7XXXXXXXXXX или 8XXXXXXXXXX
PHONE_PATTERN = re.compile(r"[78]\d{10}", re.ASCII)

INVALID_PHONE = "Неправильный номер"
NO_CONTRACTS = "Договоры для этого номера не найдены"
INVALID_LOGIN_DATA = "Неправильные данные авторизации"
INVALID_CONFIRMATION_CODE = "Неправильный код подтверждения"

Phone = Union[int, str]


def mask_phone(phone: Phone) -> str:
    """Маскирует номер для логов: 7912*****67"""
    text = str(phone)
    if len(text) <= 6:
        return "*" * len(text)
    return f"{text[:4]}{'*' * (len(text) - 6)}{text[-2:]}"


def raise_for_status(response: requests.Response, errors: Mapping[int, DomruBaseError]) -> None:
    """
    Переводит перечисленные HTTP-статусы в доменные исключения.
    Остальные ошибки пробрасываются как requests.HTTPError без изменений.
    """
    error = errors.get(response.status_code)
    if error is not None:
        response.close()
        raise error
    response.raise_for_status()


def validate_phone(phone: Phone) -> int:
    """
    Проверяет номер телефона локально, до обращения к сети.

    Номер должен состоять из 11 цифр и начинаться с 7 или 8.

    Raises:
        ValidationError: номер не проходит проверку.
    """
    if isinstance(phone, bool) or not isinstance(phone, (int, str)):
        raise ValidationError("INVALID_PHONE", INVALID_PHONE, f"неподдерживаемый тип {type(phone).__name__}")
    text = str(phone).strip()
    if not PHONE_PATTERN.fullmatch(text):
        raise ValidationError("INVALID_PHONE", INVALID_PHONE, "ожидается 11 цифр, начиная с 7 или 8")
    return int(text)


# 2. Вспомогательные классы (Helper Classes)
class LoginDetails:
    """
    Учётная запись-кандидат, возвращённая запросом /auth/v2/login/{phone}.
    Сервер не присылает номер телефона в каждой записи, клиент добавляет его сам.

    Attributes:
        phone (int): номер телефона, по которому выполнялся поиск.
        operator_id (int): идентификатор оператора.
        subscriber_id (int): идентификатор абонента.
        account_id (str | None): лицевой счёт.
        place_id (int): идентификатор места.
        address (str): адрес.
        profile_id (str | None): идентификатор профиля.
    """
    def __init__(self, phone: int, data: Mapping[str, Any]):
        self.phone = phone
        self.operator_id = data.get("operatorId")
        self.subscriber_id = data.get("subscriberId")
        self.account_id = data.get("accountId")
        self.place_id = data.get("placeId")
        self.address = data.get("address")
        self.profile_id = data.get("profileId")

    def to_payload(self) -> Dict[str, Any]:
        """Тело запроса в формате сервера, без номера телефона."""
        return {
            "operatorId": self.operator_id,
            "subscriberId": self.subscriber_id,
            "accountId": self.account_id,
            "placeId": self.place_id,
            "address": self.address,
            "profileId": self.profile_id,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LoginDetails):
            return NotImplemented
        return self.phone == other.phone and self.to_payload() == other.to_payload()

    def __repr__(self):
        return (f"<LoginDetails phone='{mask_phone(self.phone)}' operator_id={self.operator_id} "
                f"subscriber_id={self.subscriber_id} place_id={self.place_id} address='{self.address}'>")


class Credentials:
    """
    Набор учётных данных сессии. Объект не изменяется после создания:
    при входе и при обновлении токенов он заменяется целиком.
    """
    def __init__(
        self,
        operator_id: int,
        access_token: str,
        refresh_token: str,
        phone: Optional[int] = None,
        subscriber_id: Optional[int] = None,
        account_id: Optional[str] = None,
        place_id: Optional[int] = None,
    ):
        if operator_id is None or not access_token or not refresh_token:
            raise ValidationError("INVALID_CREDENTIALS", "operator_id, access_token и refresh_token обязательны")
        self.operator_id = operator_id
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.phone = phone
        self.subscriber_id = subscriber_id
        self.account_id = account_id
        self.place_id = place_id

    @classmethod
    def from_login(cls, login_details: LoginDetails, bundle: TokenBundle) -> "Credentials":
        return cls(
            operator_id=bundle.get("operatorId", login_details.operator_id),
            access_token=bundle["accessToken"],
            refresh_token=bundle["refreshToken"],
            phone=login_details.phone,
            subscriber_id=login_details.subscriber_id,
            account_id=login_details.account_id,
            place_id=login_details.place_id,
        )

    def with_tokens(self, access_token: str, refresh_token: str) -> "Credentials":
        """Новый набор с обновлённой парой токенов и прежними данными входа."""
        return Credentials(
            operator_id=self.operator_id,
            access_token=access_token,
            refresh_token=refresh_token,
            phone=self.phone,
            subscriber_id=self.subscriber_id,
            account_id=self.account_id,
            place_id=self.place_id,
        )

    def __repr__(self):
        phone = mask_phone(self.phone) if self.phone is not None else None
        return f"<Credentials operator_id={self.operator_id} phone='{phone}' subscriber_id={self.subscriber_id}>"


# 3. Публичные функции (Public Functions)
def get_operators(
    session: requests.Session,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT,
) -> List[Operator]:
    """Каталог операторов. Авторизация не требуется."""
    response = session.get(f"{base_url}/public/v1/operators", timeout=timeout)
    response.raise_for_status()
    return cast(OperatorsResponse, response.json())["data"]


def get_login_details(
    session: requests.Session,
    phone: Phone,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT,
) -> List[LoginDetails]:
    """
    Получить учётные записи, привязанные к номеру телефона.

    Args:
        session: HTTP-сессия.
        phone: номер телефона, 11 цифр, начиная с 7 или 8.

    Returns:
        List[LoginDetails]: записи с добавленным номером телефона.

    Raises:
        ValidationError: номер не прошёл локальную проверку или сервер вернул 400.
        NotFoundError: сервер вернул 204, договоров для номера нет.
        requests.HTTPError: любой другой статус ошибки.
    """
    number = validate_phone(phone)
    logger.debug(f"Запрос учётных записей для {mask_phone(number)}")
    response = session.get(f"{base_url}/auth/v2/login/{number}", timeout=timeout)
    raise_for_status(response, {
        204: NotFoundError("204", NO_CONTRACTS, mask_phone(number)),
        400: ValidationError("400", INVALID_PHONE, mask_phone(number)),
    })
    # 300 означает несколько договоров на один номер, тело ответа такое же
    if response.status_code not in (200, 300):
        raise requests.HTTPError(f"Unexpected status {response.status_code} for url: {response.url}", response=response)
    records = cast(LoginDetailsResponse, response.json())
    return [LoginDetails(number, record) for record in records]


def send_confirmation(
    session: requests.Session,
    login_details: LoginDetails,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT,
) -> None:
    """
    Запросить отправку SMS с кодом подтверждения.

    Raises:
        AuthError: сервер отклонил данные входа (400).
    """
    url = f"{base_url}/auth/v2/confirmation/{login_details.phone}"
    response = session.post(url, json=login_details.to_payload(), timeout=timeout)
    raise_for_status(response, {400: AuthError("400", INVALID_LOGIN_DATA)})
    logger.debug(f"Код подтверждения отправлен на {mask_phone(login_details.phone)}")


def login_confirmation(
    session: requests.Session,
    login_details: LoginDetails,
    code: Union[int, str],
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT,
) -> TokenBundle:
    """
    Завершить вход кодом из SMS.

    Returns:
        TokenBundle: пара токенов и данные оператора.

    Raises:
        AuthError: неверные данные входа (409) или неверный код (403).
    """
    url = f"{base_url}/auth/v2/auth/{login_details.phone}/confirmation"
    payload = {
        "operatorId": login_details.operator_id,
        "subscriberId": login_details.subscriber_id,
        "accountId": login_details.account_id,
        "login": login_details.phone,
        "confirm1": str(code),
    }
    response = session.post(url, json=payload, timeout=timeout)
    raise_for_status(response, {
        409: AuthError("409", INVALID_LOGIN_DATA),
        403: AuthError("403", INVALID_CONFIRMATION_CODE),
    })
    logger.info(f"Вход выполнен для {mask_phone(login_details.phone)}")
    return cast(TokenBundle, response.json())


def refresh_tokens(
    session: requests.Session,
    credentials: Credentials,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT,
) -> TokenBundle:
    """
    Обновить пару токенов.

    Сервер ожидает refresh-токен в заголовке "Bearer", а не в Authorization.

    Raises:
        AuthError: сервер отклонил refresh-токен.
    """
    headers = {
        "Bearer": credentials.refresh_token,
        "Operator": str(credentials.operator_id),
    }
    response = session.get(f"{base_url}/auth/v2/session/refresh", headers=headers, timeout=timeout)
    if not response.ok:
        response.close()
        raise AuthError(str(response.status_code), "Не удалось обновить токены", response.reason or "")
    return cast(TokenBundle, response.json())
