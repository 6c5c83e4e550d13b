"""发布归档解压与放置：install 和 update 共用

流程:
  1. 归档写入 cache_dir/tmp/<name>-<随机后缀>（每次调用唯一）
  2. 条目 0 是归档唯一的顶层目录，只取其名字，不落盘
  3. 其余条目跳过目录 (size == 0)，把顶层目录名替换为包名后写入暂存目录
  4. 全部条目读取成功后，才从暂存目录移动到 target_dir/<包名>/...
  5. 无论成功失败，都关闭归档并删除临时归档和暂存目录

读取阶段失败不会改动安装目录；移动阶段失败（如目标路径是已存在的目录）
抛 InstallPlacementError，此前已移动的文件不回滚。
"""

from __future__ import annotations

import logging
import uuid

from bowerpy.core.exceptions import (
    ArchiveOpenError,
    InstallPlacementError,
    ValidationError,
)
from bowerpy.core.models import Package
from bowerpy.core.protocols import ArchiveReader, Filesystem

logger = logging.getLogger(__name__)


def rewrite_entry_path(entry_path: str, root_dir: str, package_name: str) -> str | None:
    """把归档内路径的顶层目录替换为包名；不在顶层目录下时返回 None"""
    prefix = root_dir + "/"
    if not entry_path.startswith(prefix):
        return None
    return package_name + "/" + entry_path[len(prefix):]


class ReleaseExtractor:
    """把发布归档解压到 <target_dir>/<包名>/"""

    def __init__(
        self,
        filesystem: Filesystem,
        archive_reader: ArchiveReader,
        cache_dir: str,
    ) -> None:
        self.filesystem = filesystem
        self.archive_reader = archive_reader
        self.cache_dir = cache_dir.rstrip("/")

    def extract(self, package: Package, blob: bytes) -> list[str]:
        """解压归档，返回写入的安装路径列表"""
        token = f"{package.name}-{uuid.uuid4().hex}"
        tmp_key = f"{self.cache_dir}/tmp/{token}"
        staging = f"{self.cache_dir}/tmp/{token}.staging"

        self.filesystem.write(tmp_key, blob, overwrite=True)
        try:
            relatives = self._stage(package, tmp_key, staging)
            target_root = package.target_dir.rstrip("/")
            installed: list[str] = []
            for relative in relatives:
                dest = f"{target_root}/{relative}"
                try:
                    self.filesystem.rename(f"{staging}/{relative}", dest, overwrite=True)
                except OSError as e:
                    # 已移动的文件保留在原处
                    logger.error("放置中断 %s: 已移动 %d/%d 个文件",
                                 package, len(installed), len(relatives))
                    raise InstallPlacementError(package.name, dest, str(e)) from e
                installed.append(dest)
        finally:
            self.filesystem.delete(tmp_key)
            self.filesystem.delete_tree(staging)

        logger.info("已解压 %s: %d 个文件 -> %s/%s",
                    package, len(installed), package.target_dir, package.name)
        return installed

    def _stage(self, package: Package, tmp_key: str, staging: str) -> list[str]:
        """把归档条目写入暂存目录，返回相对 target_dir 的路径"""
        try:
            handle = self.archive_reader.open(self.filesystem.local_path(tmp_key))
        except (OSError, ValueError) as e:
            raise ArchiveOpenError(package.name, tmp_key, str(e)) from e

        relatives: list[str] = []
        try:
            if handle.entry_count() == 0:
                raise ArchiveOpenError(package.name, tmp_key, "归档为空")
            root_dir = handle.entry_name_at(0).strip("/")
            for index in range(1, handle.entry_count()):
                entry = handle.entry_stat_at(index)
                if entry.is_dir:
                    continue
                relative = rewrite_entry_path(entry.path, root_dir, package.name)
                if relative is None:
                    raise ArchiveOpenError(
                        package.name, tmp_key,
                        f"条目 {entry.path} 不在顶层目录 {root_dir}/ 下",
                    )
                if ".." in relative.split("/"):
                    raise ValidationError(f"归档条目路径不安全: {entry.path}")
                try:
                    with handle.stream(entry.path) as src:
                        self.filesystem.write(f"{staging}/{relative}", src, overwrite=True)
                except ValueError as e:
                    raise ArchiveOpenError(package.name, tmp_key, str(e)) from e
                logger.debug("  %s -> %s", entry.path, relative)
                relatives.append(relative)
        finally:
            handle.close()
        return relatives
