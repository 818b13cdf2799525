import hashlib
import pytest
from unittest.mock import Mock

import requests

from lingolife.services.dictionary_service import (
    DictionaryService, build_sign, convert_dictionary_entry, error_message, truncate
)
from lingolife.utils.exceptions import NotFoundError, UpstreamError, ValidationError

DICT_URL = "https://dict.youdao.com/jsonapi"
API_URL = "https://openapi.youdao.com/api"

DICT_RESPONSE = {
    "ec": {
        "word": [{
            "ukphone": "həˈləʊ",
            "usphone": "həˈloʊ",
            "trs": [
                {"pos": "int", "tr": [{"l": {"i": ["喂，你好"]}}]},
                {"pos": "n", "tr": [{"l": {"i": ["招呼"]}}]},
            ]
        }]
    },
    "web_trans": {
        "web-translation": [
            {"key": "hello", "trans": [{"value": "你好"}, {"value": "哈罗"}]},
            {"key": "Hello Kitty", "trans": [{"value": "凯蒂猫"}]},
            {"key": "hello world", "trans": [{"value": "你好世界"}]},
            {"key": "say hello", "trans": [{"value": "打招呼"}]},
        ]
    }
}

API_RESPONSE = {
    "errorCode": "0",
    "query": "ephemeral",
    "translation": ["短暂的"],
    "basic": {
        "phonetic": "ɪˈfem(ə)rəl",
        "explains": ["adj. 短暂的；朝生暮死的", "n. 只生存一天的事物"]
    },
    "web": [{"key": "ephemeral", "value": ["短暂的", "瞬息的"]}]
}


def make_response(status_code=200, payload=None):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    else:
        response.raise_for_status.return_value = None
    return response


def make_service(settings_factory, responses, **overrides):
    http = Mock()
    http.get.side_effect = responses
    config = settings_factory(**overrides)
    return DictionaryService(config, http=http), http


def test_truncate():
    assert truncate("hello") == "hello"
    assert truncate("a" * 20) == "a" * 20
    q = "abcdefghijklmnopqrstuvwxyz"
    assert truncate(q) == "abcdefghij26qrstuvwxyz"


def test_build_sign():
    expected = hashlib.sha256("keyhellosalt1700000000secret".encode("utf-8")).hexdigest()
    assert build_sign("key", "hello", "salt", "1700000000", "secret") == expected


def test_error_message_table():
    assert error_message("108") == "Invalid app key"
    assert error_message("411") == "Access frequency limited"
    assert error_message("999") == "API Error: 999"


def test_convert_dictionary_entry():
    data = convert_dictionary_entry(DICT_RESPONSE, "hello")

    assert data["errorCode"] == "0"
    assert data["translation"] == ["喂，你好; 招呼"]
    assert data["basic"]["uk-phonetic"] == "həˈləʊ"
    assert data["basic"]["explains"] == ["int. 喂，你好", "n. 招呼"]
    assert [group["key"] for group in data["web"]] == ["hello", "Hello Kitty", "hello world"]
    assert data["web"][0]["value"] == ["你好", "哈罗"]


def test_convert_without_entries():
    assert convert_dictionary_entry({"ec": {}}, "hello") is None
    assert convert_dictionary_entry({}, "hello") is None


def test_lookup_from_free_dictionary(settings_factory):
    service, http = make_service(settings_factory, [make_response(200, DICT_RESPONSE)])

    result = service.lookup("hello")

    assert result["source"] == "dictionary"
    assert result["term"] == "Hello"
    # 没有通用音标时使用英式音标
    assert result["phonetic"] == "[həˈləʊ]"
    assert result["us_phonetic"] == "[həˈloʊ]"
    assert result["part_of_speech"] == "int"
    assert result["definition"] == "int. 喂，你好; n. 招呼"
    assert len(result["examples"]) == 3

    http.get.assert_called_once()
    args, kwargs = http.get.call_args
    assert args[0] == DICT_URL
    assert kwargs["params"] == {"q": "hello", "jsonversion": 2}
    assert "User-Agent" in kwargs["headers"]


def test_lookup_falls_back_to_signed_api(settings_factory):
    service, http = make_service(
        settings_factory,
        [make_response(200, {"ec": {}}), make_response(200, API_RESPONSE)],
        YOUDAO_APP_KEY="key", YOUDAO_APP_SECRET="secret"
    )

    result = service.lookup("ephemeral")

    assert result["source"] == "translation"
    assert result["phonetic"] == "[ɪˈfem(ə)rəl]"
    assert result["part_of_speech"] == "adj"
    assert result["translation"] == "短暂的"
    assert result["definition"] == "adj. 短暂的；朝生暮死的; n. 只生存一天的事物"

    args, kwargs = http.get.call_args
    params = kwargs["params"]
    assert args[0] == API_URL
    assert params["from"] == "en"
    assert params["to"] == "zh-CHS"
    assert params["signType"] == "v3"
    assert params["sign"] == build_sign("key", "ephemeral", params["salt"], params["curtime"], "secret")


def test_network_error_falls_back(settings_factory):
    service, http = make_service(
        settings_factory,
        [requests.ConnectionError("down"), make_response(200, API_RESPONSE)],
        YOUDAO_APP_KEY="key", YOUDAO_APP_SECRET="secret"
    )
    assert service.lookup("ephemeral")["source"] == "translation"
    assert http.get.call_count == 2


def test_fallback_without_credentials(settings_factory):
    service, _ = make_service(settings_factory, [make_response(500, None)])

    with pytest.raises(UpstreamError) as exc_info:
        service.lookup("ephemeral")
    assert exc_info.value.message == "Youdao API credentials not configured"


def test_api_error_code(settings_factory):
    service, _ = make_service(
        settings_factory,
        [make_response(200, {}), make_response(200, {"errorCode": "108"})],
        YOUDAO_APP_KEY="key", YOUDAO_APP_SECRET="secret"
    )
    with pytest.raises(UpstreamError) as exc_info:
        service.lookup("ephemeral")
    assert exc_info.value.message == "Invalid app key"


def test_api_http_failure(settings_factory):
    service, _ = make_service(
        settings_factory,
        [make_response(200, {}), make_response(502, None)],
        YOUDAO_APP_KEY="key", YOUDAO_APP_SECRET="secret"
    )
    with pytest.raises(UpstreamError) as exc_info:
        service.lookup("ephemeral")
    assert exc_info.value.message == "Failed to fetch from Youdao API"


def test_no_definition_found(settings_factory):
    service, _ = make_service(
        settings_factory,
        [make_response(200, {}), make_response(200, {"errorCode": "0", "translation": []})],
        YOUDAO_APP_KEY="key", YOUDAO_APP_SECRET="secret"
    )
    with pytest.raises(NotFoundError):
        service.lookup("qwxz")


@pytest.mark.parametrize("term", [None, "", "   "])
def test_blank_query(settings_factory, term):
    service, http = make_service(settings_factory, [])
    with pytest.raises(ValidationError):
        service.lookup(term)
    http.get.assert_not_called()
