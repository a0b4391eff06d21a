"""Datumflow glob matching.

This module provides glob matching over repository file trees:
- compile_glob: glob to regular expression with capturing groups
- GlobMatcher: matches a glob against a commit via the file-listing service
- expand_key_template: renders join/group keys from captures
"""

from .glob import (
    CompiledGlob,
    GlobMatcher,
    MatchEntry,
    compile_glob,
    expand_key_template,
    template_groups,
)

__all__ = [
    "CompiledGlob",
    "GlobMatcher",
    "MatchEntry",
    "compile_glob",
    "expand_key_template",
    "template_groups",
]
