#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Dom.ru API OAuth Module Tests

Unit tests for the unauthenticated part of the API: phone validation, the
phone + SMS login flow, the operator catalog and the token refresh call.
All requests go through the scripted adapter from conftest.py.

License: MIT
"""

import json
from typing import get_type_hints

import pytest
import requests

from domru_api_utils import oauth
from domru_api_utils.exceptions import AuthError, NotFoundError, ValidationError
from domru_api_utils.oauth import Credentials, LoginDetails
from domru_api_utils.types import BoundingBox, Coordinates, OperatorLocation

from conftest import BASE_URL

PHONE = 79120000000

LOGIN_RECORD = {
    "operatorId": 2,
    "subscriberId": 100,
    "accountId": "590000000",
    "placeId": 5,
    "address": "Пермь, ул. Ленина, 1",
    "profileId": None,
}

TOKEN_BUNDLE = {
    "operatorId": 2,
    "operatorName": "Пермь",
    "tokenType": "Bearer",
    "accessToken": "access-new",
    "expiresIn": None,
    "refreshToken": "refresh-new",
    "refreshExpiresIn": None,
}


@pytest.fixture
def login_details():
    return LoginDetails(PHONE, LOGIN_RECORD)


class TestValidatePhone:
    """Локальная проверка номера"""

    @pytest.mark.parametrize("phone", [79120000000, 89120000000, "79120000000", " 89120000000 "])
    def test_valid(self, phone):
        assert oauth.validate_phone(phone) == int(str(phone).strip())

    @pytest.mark.parametrize("phone", [
        7912000000,       # 10 цифр
        791200000000,     # 12 цифр
        99120000000,      # неверный префикс
        "7912000000a",
        "+79120000000",
        "7912000000\u00b2",  # надстрочная цифра
        "\u0667\u0669\u0661\u0662\u0660\u0660\u0660\u0660\u0660\u0660\u0660",  # арабско-индийские цифры
        "",
        -7912000000,
        True,
        None,
        7.912e10,
    ])
    def test_invalid(self, phone):
        with pytest.raises(ValidationError) as excinfo:
            oauth.validate_phone(phone)
        assert excinfo.value.message == oauth.INVALID_PHONE


class TestLoginDetails:
    """Получение учётных записей по номеру"""

    def test_invalid_phone_makes_no_request(self, session, adapter):
        with pytest.raises(ValidationError):
            oauth.get_login_details(session, 12345, BASE_URL)
        assert adapter.requests == []

    def test_non_ascii_digits_make_no_request(self, session, adapter):
        with pytest.raises(ValidationError):
            oauth.get_login_details(session, "7912000000²", BASE_URL)
        assert adapter.requests == []

    def test_records_get_phone_attached(self, session, adapter):
        adapter.add("GET", f"/auth/v2/login/{PHONE}", json_body=[LOGIN_RECORD, {**LOGIN_RECORD, "placeId": 6}])

        details = oauth.get_login_details(session, str(PHONE), BASE_URL)

        assert [d.place_id for d in details] == [5, 6]
        assert all(d.phone == PHONE for d in details)
        assert details[0].operator_id == 2
        assert details[0].account_id == "590000000"

    def test_multiple_choices_is_success(self, session, adapter):
        adapter.add("GET", f"/auth/v2/login/{PHONE}", status=300, json_body=[LOGIN_RECORD])
        assert len(oauth.get_login_details(session, PHONE, BASE_URL)) == 1

    def test_no_content_means_no_contracts(self, session, adapter):
        adapter.add("GET", f"/auth/v2/login/{PHONE}", status=204)
        with pytest.raises(NotFoundError) as excinfo:
            oauth.get_login_details(session, PHONE, BASE_URL)
        assert excinfo.value.code == "204"
        assert excinfo.value.message == oauth.NO_CONTRACTS

    def test_bad_request_means_invalid_phone(self, session, adapter):
        adapter.add("GET", f"/auth/v2/login/{PHONE}", status=400)
        with pytest.raises(ValidationError) as excinfo:
            oauth.get_login_details(session, PHONE, BASE_URL)
        assert excinfo.value.message == oauth.INVALID_PHONE

    def test_other_errors_propagate(self, session, adapter):
        adapter.add("GET", f"/auth/v2/login/{PHONE}", status=502)
        with pytest.raises(requests.HTTPError):
            oauth.get_login_details(session, PHONE, BASE_URL)

    def test_repr_masks_phone(self, login_details):
        assert str(PHONE) not in repr(login_details)


class TestConfirmation:
    """Отправка и проверка кода из SMS"""

    def test_send_confirmation_posts_details_without_phone(self, session, adapter, login_details):
        adapter.add("POST", f"/auth/v2/confirmation/{PHONE}", status=200)

        assert oauth.send_confirmation(session, login_details, BASE_URL) is None

        (request,) = adapter.sent("POST")
        assert json.loads(request.body) == LOGIN_RECORD

    def test_send_confirmation_bad_request(self, session, adapter, login_details):
        adapter.add("POST", f"/auth/v2/confirmation/{PHONE}", status=400)
        with pytest.raises(AuthError) as excinfo:
            oauth.send_confirmation(session, login_details, BASE_URL)
        assert excinfo.value.message == oauth.INVALID_LOGIN_DATA

    def test_login_confirmation_payload(self, session, adapter, login_details):
        adapter.add("POST", f"/auth/v2/auth/{PHONE}/confirmation", json_body=TOKEN_BUNDLE)

        bundle = oauth.login_confirmation(session, login_details, 1234, BASE_URL)

        assert bundle["accessToken"] == "access-new"
        (request,) = adapter.sent("POST")
        assert json.loads(request.body) == {
            "operatorId": 2,
            "subscriberId": 100,
            "accountId": "590000000",
            "login": PHONE,
            "confirm1": "1234",
        }

    @pytest.mark.parametrize("status, message", [
        (409, oauth.INVALID_LOGIN_DATA),
        (403, oauth.INVALID_CONFIRMATION_CODE),
    ])
    def test_login_confirmation_errors(self, session, adapter, login_details, status, message):
        adapter.add("POST", f"/auth/v2/auth/{PHONE}/confirmation", status=status)
        with pytest.raises(AuthError) as excinfo:
            oauth.login_confirmation(session, login_details, 1234, BASE_URL)
        assert excinfo.value.code == str(status)
        assert excinfo.value.message == message


class TestTokens:
    """Операторы и обновление токенов"""

    def test_get_operators_is_unauthenticated(self, session, adapter):
        adapter.add("GET", "/public/v1/operators", json_body={"data": [{"id": 2, "dispName": "Пермь"}]})

        operators = oauth.get_operators(session, BASE_URL)

        assert operators[0]["dispName"] == "Пермь"
        assert "Authorization" not in adapter.requests[0].headers

    def test_refresh_uses_vendor_headers(self, session, adapter, credentials):
        adapter.add("GET", "/auth/v2/session/refresh", json_body=TOKEN_BUNDLE)

        bundle = oauth.refresh_tokens(session, credentials, BASE_URL)

        assert bundle["refreshToken"] == "refresh-new"
        headers = adapter.requests[0].headers
        assert headers["Bearer"] == "refresh-1"
        assert headers["Operator"] == "2"
        assert "Authorization" not in headers

    def test_refresh_rejected(self, session, adapter, credentials):
        adapter.add("GET", "/auth/v2/session/refresh", status=401)
        with pytest.raises(AuthError) as excinfo:
            oauth.refresh_tokens(session, credentials, BASE_URL)
        assert excinfo.value.code == "401"

    def test_credentials_from_login(self, login_details):
        credentials = Credentials.from_login(login_details, TOKEN_BUNDLE)
        assert credentials.access_token == "access-new"
        assert credentials.operator_id == 2
        assert credentials.place_id == 5

        refreshed = credentials.with_tokens("a2", "r2")
        assert refreshed is not credentials
        assert (refreshed.access_token, refreshed.refresh_token) == ("a2", "r2")
        assert refreshed.subscriber_id == credentials.subscriber_id

    def test_credentials_require_tokens(self):
        with pytest.raises(ValidationError):
            Credentials(operator_id=2, access_token="", refresh_token="r")

    def test_operator_location_shape(self):
        hints = get_type_hints(OperatorLocation)
        assert hints["coordinates"] is BoundingBox
        assert get_type_hints(BoundingBox) == {"minPoint": Coordinates, "maxPoint": Coordinates}
