"""网络工具 - URL 安全校验 + 基于 urllib 的 HTTP 客户端"""

from __future__ import annotations

import logging
import urllib.error
import urllib.request
from urllib.parse import urlparse

from bowerpy.core.exceptions import HttpError, ValidationError
from bowerpy.core.models import HttpResponse

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = frozenset(("http", "https"))


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """校验 URL 仅使用 http/https，防止 file:// 等非预期协议访问

    Raises:
        ValidationError: URL scheme 不在白名单内
    """
    parsed = urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES:
        label = f" ({context})" if context else ""
        raise ValidationError(
            f"不允许的 URL 协议 '{parsed.scheme}'{label}，"
            f"仅支持 http/https: {url}"
        )


class UrllibHttpClient:
    """同步 HTTP 客户端，所有请求阻塞直到完成或超时"""

    def __init__(self, timeout: int = 30, user_agent: str = "bowerpy") -> None:
        self.timeout = timeout
        self.user_agent = user_agent

    def get(self, url: str, headers: dict[str, str] | None = None) -> HttpResponse:
        validate_url_scheme(url, context="http get")
        request_headers = {"User-Agent": self.user_agent}
        request_headers.update(headers or {})
        req = urllib.request.Request(url, headers=request_headers, method="GET")

        logger.debug("GET %s", url)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:  # nosec B310
                body = resp.read()
                status = resp.status
                resp_headers = dict(resp.headers.items())
        except urllib.error.HTTPError as e:
            raise HttpError(url, str(e.reason), status=e.code) from e
        except (urllib.error.URLError, OSError) as e:
            reason = getattr(e, "reason", e)
            raise HttpError(url, str(reason)) from e

        if not 200 <= status < 300:
            raise HttpError(url, "非 2xx 响应", status=status)
        logger.debug("  %d %s (%d 字节)", status, url, len(body))
        return HttpResponse(status=status, body=body, headers=resp_headers)
