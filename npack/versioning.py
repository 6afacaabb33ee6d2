"""Version comparison and compatibility checking.

This module provides functions for comparing semantic versions and matching
them against npm-style version ranges (e.g. "1.x.x", "^1.2.0",
">=1.0.0 <2.0.0 || 3.x").
"""

import re

from npack.errors import IncompatibleVersion

_VERSION_PATTERN = re.compile(
    r"^(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z\-\.]+))?(?:\+([0-9A-Za-z\-\.]+))?$"
)

# Partial versions used inside ranges: "1", "1.2", "1.x", "1.2.3-beta", "*"
_PARTIAL_PATTERN = re.compile(
    r"^[v=]?(\d+|[xX*])"
    r"(?:\.(\d+|[xX*])"
    r"(?:\.(\d+|[xX*])"
    r"(?:-([0-9A-Za-z\-\.]+))?"
    r"(?:\+[0-9A-Za-z\-\.]+)?)?)?$"
)
_COMPARATOR_PATTERN = re.compile(r"^(<=|>=|<|>|=|~>|~|\^)?(.+)$")
_HYPHEN_PATTERN = re.compile(r"^(\S+)\s+-\s+(\S+)$")
_OPERATOR_SPACING = re.compile(r"(<=|>=|<|>|=|~>|~|\^)\s+")

# Comparator set that no version satisfies (e.g. ">*")
_UNSATISFIABLE = [("<", (0, 0, 0, "0"))]


def parse_version(version: str) -> tuple[int, int, int, str, str]:
    """Parse semantic version string into components.

    Args:
        version: Semantic version string (e.g., "1.2.3", "1.0.0-alpha+build")

    Returns:
        Tuple of (major, minor, patch, prerelease, build_metadata)

    Raises:
        ValueError: If version doesn't match semantic versioning format
    """
    match = _VERSION_PATTERN.match(version.strip()) if isinstance(version, str) else None

    if not match:
        raise ValueError(f"Invalid semantic version: {version}")

    major, minor, patch, prerelease, build = match.groups()
    return (
        int(major),
        int(minor),
        int(patch),
        prerelease or "",
        build or "",
    )


def _compare_prerelease(pre1: str, pre2: str) -> int:
    # A version without pre-release has higher precedence
    if pre1 == pre2:
        return 0
    if not pre1:
        return 1
    if not pre2:
        return -1

    for ident1, ident2 in zip(pre1.split("."), pre2.split(".")):
        if ident1 == ident2:
            continue
        num1, num2 = ident1.isdigit(), ident2.isdigit()
        if num1 and num2:
            return 1 if int(ident1) > int(ident2) else -1
        # Numeric identifiers sort before alphanumeric ones
        if num1 != num2:
            return -1 if num1 else 1
        return 1 if ident1 > ident2 else -1

    len1, len2 = len(pre1.split(".")), len(pre2.split("."))
    if len1 == len2:
        return 0
    return 1 if len1 > len2 else -1


def _compare_parsed(v1: tuple, v2: tuple) -> int:
    for part1, part2 in zip(v1[:3], v2[:3]):
        if part1 != part2:
            return 1 if part1 > part2 else -1
    return _compare_prerelease(v1[3], v2[3])


def compare_versions(v1: str, v2: str) -> int:
    """Compare two semantic version strings.

    Args:
        v1: First version string
        v2: Second version string

    Returns:
        -1 if v1 < v2, 0 if v1 == v2, 1 if v1 > v2

    Raises:
        ValueError: If either version string is invalid

    Examples:
        >>> compare_versions("1.0.0", "1.0.0")
        0
        >>> compare_versions("2.0.0", "1.0.0")
        1
        >>> compare_versions("1.0.0", "1.0.0-alpha")
        1
        >>> compare_versions("1.0.0-alpha.10", "1.0.0-alpha.2")
        1
    """
    return _compare_parsed(parse_version(v1)[:4], parse_version(v2)[:4])


def _parse_partial(text: str, range_expr: str) -> tuple:
    """Parse a partial version, returning None for wildcard/missing parts."""
    match = _PARTIAL_PATTERN.match(text)
    if not match:
        raise ValueError(f"Invalid version range: {range_expr}")

    parts: list[int | None] = []
    for raw in match.groups()[:3]:
        # Everything after the first wildcard is a wildcard too
        if raw is None or raw in ("x", "X", "*") or (parts and parts[-1] is None):
            parts.append(None)
        else:
            parts.append(int(raw))

    prerelease = match.group(4) if parts[2] is not None else None
    return parts[0], parts[1], parts[2], prerelease or ""


def _xrange(operator: str, partial: tuple) -> list:
    major, minor, patch, prerelease = partial

    if major is None:
        return _UNSATISFIABLE if operator in ("<", ">") else []

    if patch is not None:
        return [(operator or "=", (major, minor, patch, prerelease))]

    if minor is None:
        lower, upper = (major, 0, 0, ""), (major + 1, 0, 0, "")
    else:
        lower, upper = (major, minor, 0, ""), (major, minor + 1, 0, "")

    if operator in ("", "="):
        return [(">=", lower), ("<", upper)]
    if operator == ">":
        return [(">=", upper)]
    if operator == ">=":
        return [(">=", lower)]
    if operator == "<":
        return [("<", lower)]
    return [("<", upper)]


def _tilde(partial: tuple) -> list:
    major, minor, patch, prerelease = partial

    if major is None:
        return []
    if minor is None:
        return [(">=", (major, 0, 0, "")), ("<", (major + 1, 0, 0, ""))]
    return [
        (">=", (major, minor, patch or 0, prerelease)),
        ("<", (major, minor + 1, 0, "")),
    ]


def _caret(partial: tuple) -> list:
    major, minor, patch, prerelease = partial

    if major is None:
        return []

    lower = (major, minor or 0, patch or 0, prerelease)
    if major > 0 or minor is None:
        upper = (major + 1, 0, 0, "")
    elif minor > 0 or patch is None:
        upper = (0, minor + 1, 0, "")
    else:
        upper = (0, 0, patch + 1, "")

    return [(">=", lower), ("<", upper)]


def _hyphen(lower: tuple, upper: tuple) -> list:
    comparators = []

    if lower[0] is not None:
        comparators.append((">=", (lower[0], lower[1] or 0, lower[2] or 0, lower[3])))

    major, minor, patch, prerelease = upper
    if major is None:
        pass
    elif minor is None:
        comparators.append(("<", (major + 1, 0, 0, "")))
    elif patch is None:
        comparators.append(("<", (major, minor + 1, 0, "")))
    else:
        comparators.append(("<=", (major, minor, patch, prerelease)))

    return comparators


def _parse_range(range_expr: str) -> list[list]:
    """Desugar a range expression into alternatives of primitive comparators."""
    if not isinstance(range_expr, str):
        raise ValueError(f"Invalid version range: {range_expr!r}")

    alternatives = []
    for alternative in range_expr.split("||"):
        alternative = alternative.strip()

        hyphen = _HYPHEN_PATTERN.match(alternative)
        if hyphen:
            alternatives.append(
                _hyphen(
                    _parse_partial(hyphen.group(1), range_expr),
                    _parse_partial(hyphen.group(2), range_expr),
                )
            )
            continue

        comparators = []
        for token in _OPERATOR_SPACING.sub(r"\1", alternative).split():
            match = _COMPARATOR_PATTERN.match(token)
            operator = match.group(1) or ""
            partial = _parse_partial(match.group(2), range_expr)

            if operator in ("~", "~>"):
                comparators.extend(_tilde(partial))
            elif operator == "^":
                comparators.extend(_caret(partial))
            else:
                comparators.extend(_xrange(operator, partial))

        alternatives.append(comparators)

    return alternatives


def _test_comparator(version: tuple, comparator: tuple) -> bool:
    operator, bound = comparator
    result = _compare_parsed(version, bound)

    if operator == "<":
        return result < 0
    if operator == "<=":
        return result <= 0
    if operator == ">":
        return result > 0
    if operator == ">=":
        return result >= 0
    return result == 0


def _prerelease_allowed(version: tuple, comparators: list) -> bool:
    # Pre-releases only match when a comparator opts in on the same release
    if not version[3]:
        return True
    return any(bound[3] and bound[:3] == version[:3] for _, bound in comparators)


def validate_range(range_expr: str) -> None:
    """Check that a range expression is well formed.

    Raises:
        ValueError: If the expression cannot be parsed
    """
    _parse_range(range_expr)


def satisfies(version: str, range_expr: str) -> bool:
    """Check whether a version satisfies a range expression.

    Args:
        version: Semantic version string
        range_expr: npm-style range (e.g. "1.x.x", "^1.2.0", ">=1.0.0 <2.0.0")

    Returns:
        True if version is inside the range, False otherwise

    Raises:
        ValueError: If version or range_expr is malformed

    Examples:
        >>> satisfies("1.4.2", "1.x.x")
        True
        >>> satisfies("2.0.0", "1.x.x")
        False
        >>> satisfies("0.2.5", "^0.2.3")
        True
    """
    parsed = parse_version(version)[:4]

    for comparators in _parse_range(range_expr):
        if all(_test_comparator(parsed, c) for c in comparators) and _prerelease_allowed(
            parsed, comparators
        ):
            return True

    return False


def check_compatibility(host_version: str, required_range: str | None) -> None:
    """Ensure the host version satisfies a package's required range.

    A package without a required range is compatible with any host. An
    unparseable host version never satisfies a range.

    Args:
        host_version: Version of the running npack host
        required_range: Range declared by the package (None means any)

    Raises:
        IncompatibleVersion: If host_version is outside required_range
    """
    if required_range is None:
        return

    try:
        compatible = satisfies(host_version, required_range)
    except ValueError:
        compatible = False

    if not compatible:
        raise IncompatibleVersion(host_version, required_range)
