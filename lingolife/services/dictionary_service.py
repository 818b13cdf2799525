#!/usr/bin/env python3
"""
词典查询服务
代理有道词典：先查询免费词典接口，失败或无结果时退回到需要签名的翻译接口，
并把两种响应统一整理为同一种查询结果结构。查询结果不做缓存。
"""

import hashlib
import logging
import re
import time
import uuid
from typing import Any, Dict, List, Optional

import requests

from lingolife.config.settings import Settings, settings as default_settings
from lingolife.utils.exceptions import NotFoundError, UpstreamError, ValidationError

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

# 有道翻译接口错误码
YOUDAO_ERROR_MESSAGES = {
    "101": "Missing required parameters",
    "102": "Unsupported language type",
    "103": "Translation text too long",
    "104": "Unsupported API type",
    "105": "Unsupported signature type",
    "106": "Unsupported response type",
    "107": "Unsupported transport encryption",
    "108": "Invalid app key",
    "109": "Invalid batchLog format",
    "110": "No valid app for related service",
    "111": "Invalid developer account",
    "112": "Invalid request service",
    "113": "Query content cannot be empty",
    "114": "Unsupported image format",
    "116": "Invalid strict field value",
    "201": "Decryption failed",
    "202": "Signature verification failed",
    "203": "Access IP not in whitelist",
    "205": "Requested interface inconsistent with app platform",
    "206": "Signature verification failed due to invalid timestamp",
    "207": "Replay request",
    "301": "Dictionary query failed",
    "302": "Translation query failed",
    "303": "Other server exceptions",
    "401": "Account has outstanding balance",
    "411": "Access frequency limited",
}

MAX_WEB_EXAMPLES = 3

_POS_PATTERN = re.compile(r"^([a-zA-Z]+)\.\s*(.+)$")


def truncate(q: str) -> str:
    """签名用的截断规则：不超过20个字符原样返回，否则取前10位+长度+后10位"""
    size = len(q)
    if size <= 20:
        return q
    return q[:10] + str(size) + q[size - 10:]


def build_sign(app_key: str, q: str, salt: str, curtime: str, app_secret: str) -> str:
    """生成v3签名 sha256(appKey + truncate(q) + salt + curtime + appSecret)"""
    raw = app_key + truncate(q) + salt + curtime + app_secret
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def error_message(code: str) -> str:
    return YOUDAO_ERROR_MESSAGES.get(code, f"API Error: {code}")


def _sense_text(sense: Dict[str, Any]) -> str:
    parts = []
    for item in sense.get("tr") or []:
        words = (item.get("l") or {}).get("i") or []
        if isinstance(words, str):
            words = [words]
        parts.append("".join(w for w in words if isinstance(w, str)))
    return "".join(parts)


def _web_examples(dict_data: Dict[str, Any]) -> List[Dict[str, Any]]:
    web_trans = dict_data.get("web_trans") or {}
    groups = web_trans.get("web-translation") or web_trans.get("web_translation") or []

    examples = []
    for group in groups:
        key = group.get("key")
        trans = group.get("trans")
        if not key or not trans:
            continue
        if isinstance(trans, str):
            values = [t.strip() for t in trans.split("\n") if t.strip()]
        else:
            values = [t.get("value", "").strip() for t in trans if isinstance(t, dict) and t.get("value")]
        examples.append({"key": key, "value": values})
    return examples[:MAX_WEB_EXAMPLES]


def convert_dictionary_entry(dict_data: Dict[str, Any], q: str) -> Optional[Dict[str, Any]]:
    """
    把免费词典接口的响应转换成翻译接口的结构
    没有 ec.word 数据时返回None
    """
    ec = dict_data.get("ec") or {}
    entries = ec.get("word") or []
    if not entries:
        return None

    entry = entries[0]
    senses = entry.get("trs") or []

    explains = []
    texts = []
    for sense in senses:
        text = _sense_text(sense)
        if text:
            texts.append(text)
        pos = f"{sense['pos']}. " if sense.get("pos") else ""
        if pos + text:
            explains.append(pos + text)

    translation = "; ".join(texts)
    return {
        "errorCode": "0",
        "query": q,
        "translation": [translation] if translation else [],
        "basic": {
            "phonetic": entry.get("phone") or "",
            "uk-phonetic": entry.get("ukphone") or "",
            "us-phonetic": entry.get("usphone") or "",
            "explains": explains
        },
        "web": _web_examples(dict_data)
    }


def check_error_code(data: Dict[str, Any]):
    code = str(data.get("errorCode", "0"))
    if code != "0":
        message = error_message(code)
        logger.warning(f"有道接口返回错误: {code} - {message}")
        raise UpstreamError(message)


def extract_word_info(data: Dict[str, Any], term: str) -> Dict[str, Any]:
    """从有道翻译接口结构中提取单词信息"""
    basic = data.get("basic") or {}
    web = data.get("web") or []

    phonetic = basic.get("phonetic") or ""
    uk_phonetic = basic.get("uk-phonetic") or ""
    us_phonetic = basic.get("us-phonetic") or ""

    translations = data.get("translation") or []
    translation = translations[0] if translations else ""

    definition = ""
    part_of_speech = ""
    explains = basic.get("explains") or []
    if explains:
        match = _POS_PATTERN.match(explains[0])
        if match:
            part_of_speech = match.group(1)
        definition = "; ".join(explains)
    elif web:
        definition = "; ".join(web[0].get("value") or [])

    if not definition and translation:
        definition = translation

    # 音标优先级：通用 > 英式 > 美式
    display_phonetic = phonetic or uk_phonetic or us_phonetic

    return {
        "term": term[:1].upper() + term[1:],
        "phonetic": f"[{display_phonetic}]" if display_phonetic else "",
        "uk_phonetic": f"[{uk_phonetic}]" if uk_phonetic else "",
        "us_phonetic": f"[{us_phonetic}]" if us_phonetic else "",
        "part_of_speech": part_of_speech,
        "translation": translation,
        "definition": definition,
        "examples": web
    }


class DictionaryService:
    """有道词典查询服务"""

    def __init__(self, config: Settings = None, http: requests.Session = None):
        self.config = config or default_settings
        self.http = http or requests.Session()
        self.timeout = self.config.DICTIONARY_TIMEOUT

    def lookup(self, term: Optional[str]) -> Dict[str, Any]:
        """
        查询单词

        Args:
            term: 查询词

        Returns:
            Dict: 统一结构的查询结果，source 字段标明数据来源

        Raises:
            ValidationError: 查询词为空
            UpstreamError: 有道接口出错或未配置
            NotFoundError: 没有任何释义
        """
        q = (term or "").strip()
        if not q:
            raise ValidationError('Query parameter "q" is required')

        data = self._query_dictionary(q)
        source = "dictionary"
        if data is None:
            data = self._query_translation_api(q)
            source = "translation"

        check_error_code(data)

        result = extract_word_info(data, q)
        if not result["translation"] and not result["definition"]:
            raise NotFoundError("No definition found for this word. Please try another word.")

        result["source"] = source
        logger.info(f"词典查询成功: {q} (来源: {source})")
        return result

    def _query_dictionary(self, q: str) -> Optional[Dict[str, Any]]:
        """调用免费词典接口，任何失败都返回None以便走后备接口"""
        try:
            logger.debug(f"调用有道词典接口: {q}")
            response = self.http.get(
                self.config.YOUDAO_DICT_URL,
                params={"q": q, "jsonversion": 2},
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout
            )
            if response.status_code != 200:
                logger.info(f"词典接口返回状态码 {response.status_code}，改用翻译接口")
                return None

            data = convert_dictionary_entry(response.json(), q)
            if data is None:
                logger.info(f"词典接口没有 {q} 的词条，改用翻译接口")
            return data

        except (requests.RequestException, ValueError) as e:
            logger.info(f"词典接口调用失败，改用翻译接口: {e}")
            return None

    def _query_translation_api(self, q: str) -> Dict[str, Any]:
        """调用需要签名的翻译接口"""
        app_key = self.config.YOUDAO_APP_KEY
        app_secret = self.config.YOUDAO_APP_SECRET
        if not app_key or not app_secret:
            raise UpstreamError("Youdao API credentials not configured")

        salt = str(uuid.uuid4())
        curtime = str(int(time.time()))
        params = {
            "q": q,
            "from": "en",
            "to": "zh-CHS",
            "appKey": app_key,
            "salt": salt,
            "sign": build_sign(app_key, q, salt, curtime, app_secret),
            "signType": "v3",
            "curtime": curtime
        }

        try:
            logger.debug(f"调用有道翻译接口: {q}")
            response = self.http.get(
                self.config.YOUDAO_API_URL,
                params=params,
                timeout=self.timeout
            )
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"有道翻译接口调用失败: {e}")
            raise UpstreamError("Failed to fetch from Youdao API") from e
