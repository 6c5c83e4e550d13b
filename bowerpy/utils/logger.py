"""bowerpy 日志配置

只给 "bowerpy" 命名空间挂 handler，根日志器保持不动。
级别和格式默认取自环境变量:
  BOWERPY_LOG_LEVEL  DEBUG / INFO / WARNING / ERROR（默认 INFO）
  BOWERPY_LOG_JSON   为 1 时输出单行 JSON
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone

LOGGER_NAME = "bowerpy"
ENV_LEVEL = "BOWERPY_LOG_LEVEL"
ENV_JSON = "BOWERPY_LOG_JSON"

TEXT_FORMAT = "%(levelname)-7s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """单行 JSON 日志

    安装失败的记录带有 dependency_chain（root -> ... -> 出错的包）:
        {"time": "...", "level": "ERROR", "logger": "bowerpy.core.installer",
         "message": "...", "dependency_chain": ["app", "foo"]}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        chain = getattr(record, "dependency_chain", None)
        if chain:
            entry["dependency_chain"] = list(chain)
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(
    level: str | None = None, json_output: bool | None = None,
) -> logging.Logger:
    """配置 bowerpy 日志器，输出到 stderr；参数为 None 时读取环境变量

    重复调用会替换之前的 handler。
    """
    if level is None:
        level = os.getenv(ENV_LEVEL, "INFO")
    if json_output is None:
        json_output = os.getenv(ENV_JSON, "") == "1"

    reset_logging()
    log = logging.getLogger(LOGGER_NAME)
    log.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else logging.Formatter(TEXT_FORMAT))
    log.addHandler(handler)
    return log


def reset_logging() -> None:
    """移除 bowerpy 日志器的 handler 并恢复默认级别"""
    log = logging.getLogger(LOGGER_NAME)
    for handler in log.handlers[:]:
        log.removeHandler(handler)
        handler.close()
    log.setLevel(logging.NOTSET)
