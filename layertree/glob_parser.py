"""Break glob patterns into cheaper, index-friendly search requests."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum

_GLOB_CHARS = "*?[]{}"
_GLOB_RECURSION = re.compile(r"(\*\*/?)+")


class SearchBasis(Enum):
    """How a search request should be carried out."""

    # the unprocessed glob, matched directly against the tree
    GLOB = "glob"
    # not a glob at all: a plain path lookup
    FULL_PATH = "full-path"
    # e.g. "**/*.py": only the extension is specific
    EXTENSION = "extension"
    # e.g. "**/bin/python": only the basename is specific
    BASENAME = "basename"
    # e.g. "**/bin/python*": limited to basenames matching a glob
    BASENAME_GLOB = "basename-glob"
    # e.g. "**/var/lib/dpkg/status.d/*": everything within a directory
    SUB_DIRECTORY = "subdirectory"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SearchRequest:
    """One search to perform, with an optional full-glob requirement on the results."""

    basis: SearchBasis
    value: str = ""
    requirement: str = ""

    def __str__(self) -> str:
        text = f"{self.basis}: {self.value}"
        if self.requirement:
            text += f" (requirement: {self.requirement})"
        return text


def _has_any(text: str, chars: str) -> bool:
    return any(c in chars for c in text)


def parse_glob(glob: str) -> list[SearchRequest]:
    """Turn a glob into the list of search requests that together answer it."""
    glob = clean_glob(glob)

    if not _has_any(glob, _GLOB_CHARS):
        return [SearchRequest(SearchBasis.FULL_PATH, glob)]

    before_basename, name = split_at_basename(glob)

    if name == "*":
        _, nested_basename = split_at_basename(before_basename)
        if not _has_any(nested_basename, _GLOB_CHARS):
            # the glob selects the contents of a single directory
            return [
                SearchRequest(SearchBasis.SUB_DIRECTORY, nested_basename, before_basename)
            ]

    return [
        _apply_requirement(request, before_basename, glob)
        for request in parse_glob_basename(name)
    ]


def split_at_basename(glob: str) -> tuple[str, str]:
    """Split a glob at its last separator into (everything before, basename)."""
    split_at = glob.rfind("/")
    name = ""
    before = ""
    if split_at == -1:
        # no path prefix: this can only be a basename, basename glob or extension
        name = glob
    elif split_at < len(glob) - 1:
        name = glob[split_at + 1:]

    if 0 <= split_at < len(glob) - 1:
        before = glob[:split_at]

    return before, name


def _apply_requirement(request: SearchRequest, before_basename: str, glob: str) -> SearchRequest:
    requirement = ""
    if before_basename:
        requirement = glob
        if before_basename in ("**", request.requirement) and request.basis is not SearchBasis.EXTENSION:
            requirement = ""

    request = replace(request, requirement=requirement)

    if request.basis is SearchBasis.GLOB:
        request = replace(
            request,
            value=glob,
            requirement="" if glob == request.requirement else request.requirement,
        )
    return request


def parse_glob_basename(basename: str) -> list[SearchRequest]:
    """Classify the basename part of a glob."""
    if _has_any(basename, "[]{}"):
        return _parse_basename_alt_and_class_sections(basename)

    extension_fields = basename.split("*.")
    if len(extension_fields) == 2 and extension_fields[0] == "":
        possible_extension = extension_fields[1]
        if not _has_any(possible_extension, "*?"):
            return [SearchRequest(SearchBasis.EXTENSION, "." + possible_extension)]

    if not _has_any(basename, "*?"):
        return [SearchRequest(SearchBasis.BASENAME, basename)]

    if basename.replace("?", "").replace("*", "") == "":
        # only wildcards: the caller attaches the full glob
        return [SearchRequest(SearchBasis.GLOB)]

    return [SearchRequest(SearchBasis.BASENAME_GLOB, basename)]


def _parse_basename_alt_and_class_sections(basename: str) -> list[SearchRequest]:
    alt_start_count = basename.count("{")
    alt_end_count = basename.count("}")
    class_start_count = basename.count("[")
    class_end_count = basename.count("]")

    if alt_start_count != alt_end_count or class_start_count != class_end_count:
        # imbalanced braces: not a valid glob for the basename alone
        return [SearchRequest(SearchBasis.GLOB)]

    if class_start_count > 0:
        return [SearchRequest(SearchBasis.BASENAME_GLOB, basename)]

    if alt_start_count == 1:
        starts_with_alt = basename.find("{") == 0
        ends_with_alt = basename.find("}") == len(basename) - 1
        if starts_with_alt and ends_with_alt:
            # a simple list such as {a,b,c}
            sections = basename[1:-1].split(",")
            if len(sections) > 1:
                return [
                    SearchRequest(
                        SearchBasis.BASENAME_GLOB if _has_any(section, "*?") else SearchBasis.BASENAME,
                        section,
                    )
                    for section in sections
                ]

    return [SearchRequest(SearchBasis.BASENAME_GLOB, basename)]


def clean_glob(glob: str) -> str:
    """Trim and simplify a glob: collapse slashes and redundant asterisks."""
    glob = glob.strip()
    glob = remove_redundant_count_glob(glob, "/", 1)
    glob = remove_redundant_count_glob(glob, "*", 2)
    if len(glob) > 1:
        # a lone "/" is kept
        glob = glob.rstrip("/")
    glob = simplify_multiple_glob_asterisks(glob)
    return simplify_glob_recursion(glob)


def simplify_multiple_glob_asterisks(glob: str) -> str:
    """Reduce asterisk runs that are not whole recursive path elements to a single asterisk."""
    out: list[str] = []
    pending_asterisks = 0
    within_recursive_streak = False

    for position, char in enumerate(glob):
        if char == "*":
            if position == 0:
                within_recursive_streak = True
            pending_asterisks += 1
            continue

        if char == "/":
            if within_recursive_streak:
                out.append("*" * pending_asterisks)
                pending_asterisks = 0
            if pending_asterisks:
                out.append("*")
                pending_asterisks = 0
            within_recursive_streak = True
        else:
            if pending_asterisks:
                out.append("*")
            pending_asterisks = 0
            within_recursive_streak = False

        out.append(char)

    if pending_asterisks:
        out.append("*" * pending_asterisks if within_recursive_streak else "*")

    return "".join(out)


def simplify_glob_recursion(glob: str) -> str:
    """Collapse repeated recursive elements ("**/**/") into one."""
    glob = _GLOB_RECURSION.sub("**/", glob)
    glob = glob.replace("//", "/")
    if glob.startswith("/**/"):
        glob = glob[1:]
    if len(glob) > 1:
        glob = glob.rstrip("/")
    return glob


def remove_redundant_count_glob(glob: str, val: str, count: int) -> str:
    """Limit every run of ``val`` to at most ``count`` characters."""
    out: list[str] = []
    streak = 0
    for char in glob:
        if char == val:
            streak += 1
            if streak > count:
                continue
        else:
            streak = 0
        out.append(char)
    return "".join(out)