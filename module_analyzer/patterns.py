"""
Glob Patterns
Anchored glob matching used by configured rules and coupling excludes
"""

import os
import re
from typing import Iterable, List, Optional, Pattern


def compile_glob(pattern: str) -> Pattern:
    """Compile a glob where '*' matches any run of characters and '?' a single one"""
    parts = []
    for char in pattern:
        if char == '*':
            parts.append('.*')
        elif char == '?':
            parts.append('.')
        else:
            parts.append(re.escape(char))
    return re.compile(''.join(parts), re.DOTALL)


def compile_globs(patterns: Iterable[str]) -> List[Pattern]:
    return [compile_glob(pattern) for pattern in patterns]


def matches_glob(value: str, pattern: Pattern) -> bool:
    """Whole-string match, never a substring search"""
    return pattern.fullmatch(value) is not None


def matches_any(value: str, patterns: Iterable[Pattern]) -> bool:
    return any(matches_glob(value, pattern) for pattern in patterns)


def relative_path(path: str, root: Optional[str]) -> str:
    """Project-relative path with forward slashes, or the path itself without a root"""
    if not root:
        return path.replace(os.sep, '/')
    try:
        relative = os.path.relpath(path, root)
    except ValueError:
        return path.replace(os.sep, '/')
    return relative.replace(os.sep, '/')
