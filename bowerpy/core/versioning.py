"""版本约束匹配与已安装版本比较策略

职责:
- 解析 bower/npm 风格的版本约束（精确、比较符、^、~、x-range、连字符范围、||）
- 从一组可用版本中选出满足约束的最高版本
- VersionPolicy 实现：exact（字符串相等）/ semver（范围求值）

版本解析和比较交给 semver 库，这里只负责把约束展开成比较符序列。
"""

from __future__ import annotations

import logging
import operator
import re
from collections.abc import Iterable

import semver

from bowerpy.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

# 视为"任意版本"的约束
ANY_VERSION = frozenset(("", "*", "x", "X", "latest"))

_XRANGE_RE = re.compile(
    r"^(\d+|[xX*])(?:\.(\d+|[xX*]))?(?:\.(\d+|[xX*]))?$"
)
_OP_RE = re.compile(r"^(>=|<=|>|<|=|\^|~>|~)?\s*(.*)$")
_HYPHEN_RE = re.compile(r"^(\S+)\s+-\s+(\S+)$")
_OP_SPACE_RE = re.compile(r"(>=|<=|>|<|=|\^|~>|~)\s+")

_CMP = {
    "=": operator.eq,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}

Comparator = tuple[str, semver.Version]


def _strip_prefix(text: str) -> str:
    text = text.strip()
    while text[:1] in ("v", "V", "="):
        text = text[1:].lstrip()
    return text


def parse_version(text: str) -> semver.Version | None:
    """解析版本号，允许前缀 v / = 和省略 minor、patch；无法解析返回 None"""
    cleaned = _strip_prefix(text)
    if not cleaned:
        return None
    try:
        return semver.Version.parse(cleaned, optional_minor_and_patch=True)
    except (ValueError, TypeError):
        return None


# =========================================================================
# 约束展开
# =========================================================================

def _partial_bounds(nums: list[int]) -> tuple[semver.Version, semver.Version | None]:
    """x-range 的闭开区间 [low, high)；nums 为空表示任意版本"""
    padded = nums + [0] * (3 - len(nums))
    low = semver.Version(*padded)
    if not nums:
        return low, None
    if len(nums) == 1:
        return low, semver.Version(nums[0] + 1)
    return low, semver.Version(nums[0], nums[1] + 1)


def _caret_upper(v: semver.Version, given: int) -> semver.Version:
    if v.major > 0 or given == 1:
        return semver.Version(v.major + 1)
    if v.minor > 0 or given == 2:
        return semver.Version(0, v.minor + 1)
    return semver.Version(0, 0, v.patch + 1)


def _expand(op: str, operand: str) -> list[Comparator]:
    """把一个 "比较符+版本" 展开成比较符序列；无法识别时抛 ValueError"""
    operand = _strip_prefix(operand)
    match = _XRANGE_RE.match(operand)
    if match is not None:
        nums: list[int] = []
        for part in match.groups():
            if part is None or part in ("x", "X", "*"):
                break
            nums.append(int(part))
        if len(nums) < 3:
            return _expand_partial(op, nums)

    version = parse_version(operand)
    if version is None:
        raise ValueError(f"无法识别的版本: {operand!r}")

    if op in ("", "="):
        return [("=", version)]
    if op == "^":
        return [(">=", version), ("<", _caret_upper(version, 3))]
    if op in ("~", "~>"):
        return [(">=", version), ("<", semver.Version(version.major, version.minor + 1))]
    return [(op, version)]


def _expand_partial(op: str, nums: list[int]) -> list[Comparator]:
    low, high = _partial_bounds(nums)
    if high is None:
        # *、x 等价于任意版本；< * 无意义
        if op == "<":
            return [("<", semver.Version(0))]
        return []
    if op in ("", "=", "~", "~>"):
        return [(">=", low), ("<", high)]
    if op == "^":
        return [(">=", low), ("<", _caret_upper(low, len(nums)))]
    if op == ">":
        return [(">=", high)]
    if op == ">=":
        return [(">=", low)]
    if op == "<":
        return [("<", low)]
    return [("<", high)]  # <=


def parse_constraint(constraint: str) -> list[list[Comparator]]:
    """解析约束为 "或" 分支列表，每个分支是需同时满足的比较符"""
    alternatives: list[list[Comparator]] = []
    for alt in constraint.split("||"):
        alt = alt.strip()
        if alt in ANY_VERSION:
            alternatives.append([])
            continue
        hyphen = _HYPHEN_RE.match(alt)
        if hyphen:
            comparators = _expand(">=", hyphen.group(1)) + _expand("<=", hyphen.group(2))
        else:
            comparators = []
            for token in _OP_SPACE_RE.sub(r"\1", alt).split():
                m = _OP_RE.match(token)
                comparators.extend(_expand(m.group(1) or "", m.group(2)))
        alternatives.append(comparators)
    return alternatives


def _test(version: semver.Version, comparators: list[Comparator]) -> bool:
    if version.prerelease:
        # 预发布版本只有在约束中显式提到同一 major.minor.patch 时才参与匹配
        core = (version.major, version.minor, version.patch)
        if not any(
            c.prerelease and (c.major, c.minor, c.patch) == core
            for _, c in comparators
        ):
            return False
    return all(_CMP[op](version.compare(c), 0) for op, c in comparators)


def satisfies(version: str, constraint: str) -> bool:
    """判断版本是否满足约束"""
    constraint = constraint.strip()
    if version.strip() == constraint:
        return True
    parsed = parse_version(version)
    if parsed is None:
        return False
    try:
        alternatives = parse_constraint(constraint)
    except ValueError:
        # 非 semver 约束（分支名、任意 tag），只接受字面相等
        return False
    return any(_test(parsed, comps) for comps in alternatives)


def max_satisfying(versions: Iterable[str], constraint: str) -> str | None:
    """从可用版本中选出满足约束的最高版本，找不到返回 None

    字面完全相同的版本（如非 semver 的 tag 名）优先返回。
    """
    candidates = list(versions)
    constraint = constraint.strip()
    if constraint and constraint in candidates:
        return constraint

    best: str | None = None
    best_version: semver.Version | None = None
    for text in candidates:
        if not satisfies(text, constraint):
            continue
        parsed = parse_version(text)
        if parsed is None:
            continue
        if best_version is None or parsed > best_version:
            best, best_version = text, parsed
    return best


# =========================================================================
# 已安装版本比较策略
# =========================================================================

class ExactVersionPolicy:
    """字符串完全相等才算满足（默认策略）"""

    name = "exact"

    def is_satisfied(self, installed: str, constraint: str) -> bool:
        return installed == constraint

    def same_release(self, installed: str, resolved: str) -> bool:
        return installed == resolved


class SemverVersionPolicy:
    """已安装版本满足约束范围即可，不再重新下载"""

    name = "semver"

    def is_satisfied(self, installed: str, constraint: str) -> bool:
        return bool(installed) and satisfies(installed, constraint)

    def same_release(self, installed: str, resolved: str) -> bool:
        if installed == resolved:
            return True
        a, b = parse_version(installed), parse_version(resolved)
        return a is not None and b is not None and a.compare(b) == 0


_POLICIES = {
    ExactVersionPolicy.name: ExactVersionPolicy,
    SemverVersionPolicy.name: SemverVersionPolicy,
}


def get_policy(name: str) -> ExactVersionPolicy | SemverVersionPolicy:
    """按名称获取版本比较策略"""
    cls = _POLICIES.get(name)
    if cls is None:
        raise ConfigError(
            f"未知的版本比较策略 '{name}'，可选: {sorted(_POLICIES)}"
        )
    return cls()
