#!/usr/bin/env python3
r"""Glob matching with capturing groups over repository file trees.

Globs are matched against repository paths with the leading slash removed:
- ``*`` matches within one path segment, ``**`` across segments
  (``**/`` also matches zero segments)
- ``?`` matches one character, ``[abc]`` / ``[!abc]`` character classes
- ``{a,b}`` alternation
- ``(...)`` capturing groups, whose text becomes the entry's captures
- ``\`` escapes the next character
- ``/`` alone matches the repository root as a single entry

Captures feed join and group keys through templates such as ``$1`` or
``$2-$1``.

Example:
    >>> matcher = GlobMatcher(store)
    >>> matcher.match(commit, "/(*).txt")
    [MatchEntry(path='/file1.txt', captures=('file1',)), ...]
"""

import re
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Set, Tuple

from datumflow.core.constants import ROOT_PATH
from datumflow.core.errors import InvalidGlob
from datumflow.services.interfaces import CommitHandle, FileListingService

TEMPLATE_REF = re.compile(r"\$(\d+)")


@dataclass(frozen=True)
class MatchEntry:
    """One matched path and the strings captured by the glob's groups."""

    path: str
    captures: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CompiledGlob:
    """A glob translated to a regular expression."""

    pattern: str
    regex: Optional[Pattern]
    group_count: int
    matches_root: bool = False

    def match_path(self, path: str) -> Optional[MatchEntry]:
        """Match a single repository path.

        Args:
            path: Absolute repository path (e.g. "/dir/file1")

        Returns:
            MatchEntry with captures, or None if the path doesn't match
        """
        if self.matches_root:
            return MatchEntry(ROOT_PATH) if path == ROOT_PATH else None

        match = self.regex.fullmatch(path.strip("/"))
        if match is None:
            return None
        return MatchEntry(path, tuple(g if g is not None else "" for g in match.groups()))


def _class_end(body: str, start: int) -> int:
    """Index of the ']' closing the class opened at start, or -1."""
    j = start + 1
    if j < len(body) and body[j] in "!^":
        j += 1
    if j < len(body) and body[j] == "]":
        j += 1
    return body.find("]", j)


def _translate_class(content: str) -> str:
    negate = content[:1] in ("!", "^")
    if negate:
        content = content[1:]

    escaped = "".join("\\" + ch if ch in "\\[]^&~|" else ch for ch in content)
    if negate:
        return "[^/" + escaped + "]"
    return "[" + escaped + "]"


def compile_glob(pattern: str) -> CompiledGlob:
    """Translate a glob into a regular expression.

    Args:
        pattern: Glob pattern (e.g. "/*", "/(*)/*.csv", "/")

    Returns:
        Compiled glob

    Raises:
        InvalidGlob: If brackets, braces or groups are unbalanced
    """
    body = pattern.strip().strip("/")
    if not body:
        return CompiledGlob(pattern=pattern, regex=None, group_count=0, matches_root=True)

    out: List[str] = []
    groups = 0
    paren_depth = 0
    brace_depth = 0
    i = 0
    n = len(body)

    while i < n:
        c = body[i]

        if c == "\\":
            if i + 1 >= n:
                raise InvalidGlob(pattern, "trailing escape character")
            out.append(re.escape(body[i + 1]))
            i += 2
            continue

        if c == "*":
            if body.startswith("**/", i):
                out.append("(?:.*/)?")
                i += 3
            elif body.startswith("**", i):
                out.append(".*")
                i += 2
            else:
                out.append("[^/]*")
                i += 1
            continue

        if c == "[":
            end = _class_end(body, i)
            if end < 0:
                raise InvalidGlob(pattern, "unterminated '['")
            out.append(_translate_class(body[i + 1:end]))
            i = end + 1
            continue

        if c == "?":
            out.append("[^/]")
        elif c == "{":
            brace_depth += 1
            out.append("(?:")
        elif c == "," and brace_depth:
            out.append("|")
        elif c == "}":
            if not brace_depth:
                raise InvalidGlob(pattern, "unmatched '}'")
            brace_depth -= 1
            out.append(")")
        elif c == "(":
            paren_depth += 1
            groups += 1
            out.append("(")
        elif c == ")":
            if not paren_depth:
                raise InvalidGlob(pattern, "unmatched ')'")
            paren_depth -= 1
            out.append(")")
        else:
            out.append(re.escape(c))
        i += 1

    if paren_depth:
        raise InvalidGlob(pattern, "unclosed '('")
    if brace_depth:
        raise InvalidGlob(pattern, "unclosed '{'")

    try:
        regex = re.compile("".join(out), re.DOTALL)
    except re.error as e:
        raise InvalidGlob(pattern, str(e)) from e

    return CompiledGlob(pattern=pattern, regex=regex, group_count=groups)


def template_groups(template: str) -> Set[int]:
    """Capture group numbers referenced by a key template."""
    return {int(ref) for ref in TEMPLATE_REF.findall(template)}


def expand_key_template(template: str, captures: Tuple[str, ...]) -> str:
    """Render a join/group key from an entry's captures.

    Args:
        template: Key template, e.g. "$1" or "$2-$1"
        captures: Captured group strings of one MatchEntry

    Returns:
        Rendered key

    Raises:
        ValueError: If the template references a group that wasn't captured
    """

    def substitute(ref: "re.Match") -> str:
        index = int(ref.group(1))
        if index < 1 or index > len(captures):
            raise ValueError(f"key template '{template}' references missing group ${index}")
        return captures[index - 1]

    return TEMPLATE_REF.sub(substitute, template)


class GlobMatcher:
    """Matches globs against commits served by a file-listing service.

    The listing service owns the tree walk; this class owns pattern
    compilation and capture extraction. Compiled globs are memoized.
    """

    def __init__(self, listing: FileListingService):
        """Initialize glob matcher.

        Args:
            listing: Service that walks a commit's file tree
        """
        self._listing = listing
        self._compiled: Dict[str, CompiledGlob] = {}
        self._lock = threading.Lock()

    def compile(self, pattern: str) -> CompiledGlob:
        """Compile a glob, reusing a previous compilation."""
        with self._lock:
            compiled = self._compiled.get(pattern)
        if compiled is None:
            compiled = compile_glob(pattern)
            with self._lock:
                self._compiled[pattern] = compiled
        return compiled

    def match(self, commit: CommitHandle, pattern: str) -> List[MatchEntry]:
        """Match a glob against every path of a commit.

        Args:
            commit: Commit whose tree is walked
            pattern: Glob pattern

        Returns:
            Matched entries in the listing service's order
        """
        compiled = self.compile(pattern)
        paths = self._listing.walk(commit)

        if compiled.matches_root:
            for _ in paths:
                return [MatchEntry(ROOT_PATH)]
            return []

        entries = []
        for path in paths:
            entry = compiled.match_path(path)
            if entry is not None:
                entries.append(entry)
        return entries
