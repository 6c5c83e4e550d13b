"""GitHub 源码仓库

注册表返回的 url 形如:
  git://github.com/<owner>/<repo>.git
  https://github.com/<owner>/<repo>
  git@github.com:<owner>/<repo>.git

- 清单: raw.githubusercontent.com 上默认分支的 bower.json，回退 package.json
- 版本: tags 接口列出全部 tag，按约束取最高版本
- 归档: tag 的 zipball
"""

from __future__ import annotations

import logging
import re

from bowerpy.core.exceptions import HttpError, RepositoryError
from bowerpy.core.models import MANIFEST_FILES
from bowerpy.core.protocols import HttpClient
from bowerpy.core.versioning import max_satisfying, parse_version

logger = logging.getLogger(__name__)

_GITHUB_URL_RE = re.compile(
    r"github\.com[:/](?P<owner>[^/\s]+)/(?P<repo>[^/\s]+?)(?:\.git)?/?$"
)

API_BASE = "https://api.github.com"
RAW_BASE = "https://raw.githubusercontent.com"
_TAGS_PER_PAGE = 100
_MAX_TAG_PAGES = 10


class GithubRepository:
    """绑定到单个 GitHub 仓库，find_package 之后才能 get_release"""

    def __init__(self, url: str, http: HttpClient) -> None:
        match = _GITHUB_URL_RE.search(url)
        if match is None:
            raise RepositoryError(url, f"不支持的仓库地址（仅支持 GitHub）: {url}")
        self._url = url
        self.http = http
        self.owner = match.group("owner")
        self.repo = match.group("repo")
        self._tag: str | None = None
        self._release_url: str | None = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"

    def get_manifest(self) -> str:
        """默认分支的清单原文；仓库里两个清单都不存在时返回空串"""
        for filename in MANIFEST_FILES:
            url = f"{RAW_BASE}/{self.slug}/HEAD/{filename}"
            try:
                return self.http.get(url).text
            except HttpError as e:
                if e.status == 404:
                    logger.debug("  %s 不存在: %s", filename, self.slug)
                    continue
                raise RepositoryError(self.slug, f"获取清单失败: {e}") from e
        return ""

    def find_package(self, constraint: str) -> str | None:
        tags = self._list_tags()
        chosen = max_satisfying(tags, constraint)
        if chosen is None:
            logger.info(
                "没有满足 %s 的 tag: %s (共 %d 个)", constraint, self.slug, len(tags),
            )
            return None
        self._tag = chosen
        self._release_url = tags[chosen]
        if chosen.startswith(("v", "V")) and parse_version(chosen) is not None:
            return chosen[1:]
        return chosen

    def get_release(self) -> bytes:
        if self._release_url is None:
            raise RepositoryError(self.slug, "尚未解析版本，请先调用 find_package()")
        logger.info("下载归档: %s@%s", self.slug, self._tag)
        try:
            return self.http.get(self._release_url).body
        except HttpError as e:
            raise RepositoryError(self.slug, f"下载归档失败: {e}") from e

    def _list_tags(self) -> dict[str, str]:
        """{tag 名: zipball 地址}，保持接口返回顺序"""
        tags: dict[str, str] = {}
        for page in range(1, _MAX_TAG_PAGES + 1):
            url = (
                f"{API_BASE}/repos/{self.slug}/tags"
                f"?per_page={_TAGS_PER_PAGE}&page={page}"
            )
            try:
                data = self.http.get(url).json()
            except HttpError as e:
                raise RepositoryError(self.slug, f"获取 tag 列表失败: {e}") from e
            except ValueError as e:
                raise RepositoryError(self.slug, f"tag 列表不是合法 JSON: {e}") from e
            if not isinstance(data, list):
                raise RepositoryError(self.slug, "tag 列表格式错误")
            for item in data:
                if isinstance(item, dict) and item.get("name"):
                    tags[str(item["name"])] = str(
                        item.get("zipball_url")
                        or f"{API_BASE}/repos/{self.slug}/zipball/{item['name']}"
                    )
            if len(data) < _TAGS_PER_PAGE:
                break
        return tags
