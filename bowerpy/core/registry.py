"""包注册表客户端

职责:
- 包名 -> 源码仓库 url 查询 (GET <base_packages_url><name>)
- 按关键字搜索包 (GET <base_packages_url>search/<query>)
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from bowerpy.core.exceptions import (
    HttpError,
    MalformedRegistryResponseError,
    RegistryLookupError,
)
from bowerpy.core.protocols import HttpClient

logger = logging.getLogger(__name__)


class RegistryClient:
    """注册表客户端 - 只做查询，不重试"""

    def __init__(self, http: HttpClient, base_packages_url: str) -> None:
        self.http = http
        self.base_packages_url = base_packages_url

    def lookup(self, name: str) -> str:
        """查询包的源码仓库 url

        Raises:
            RegistryLookupError: 注册表不可达或返回非 2xx
            MalformedRegistryResponseError: 响应不是 JSON 对象或 url 为空
        """
        url = self.base_packages_url + quote(name, safe="")
        try:
            resp = self.http.get(url)
        except HttpError as e:
            raise RegistryLookupError(name, e) from e

        try:
            data = resp.json()
        except ValueError:
            data = None
        if not isinstance(data, dict) or not data.get("url"):
            raise MalformedRegistryResponseError(name, resp.text)

        repo_url = str(data["url"])
        logger.info("注册表命中: %s -> %s", name, repo_url)
        return repo_url

    def search(self, query: str) -> list[dict[str, Any]]:
        """按关键字搜索，返回 [{"name": ..., "url": ...}, ...]"""
        url = f"{self.base_packages_url}search/{quote(query, safe='')}"
        try:
            resp = self.http.get(url)
        except HttpError as e:
            raise RegistryLookupError(query, e) from e
        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedRegistryResponseError(query, resp.text) from e
        if not isinstance(data, list):
            raise MalformedRegistryResponseError(query, resp.text)
        return [item for item in data if isinstance(item, dict) and item.get("name")]
