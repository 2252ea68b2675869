"""
Module Resolver
Maps relative import specifiers onto the set of analyzed modules using
path, extension and directory-index conventions
"""

import logging
import os
from typing import Dict, Iterable, List, Optional, Sequence

from .config import DEFAULT_DATA_EXTENSIONS, DEFAULT_EXTENSIONS
from .patterns import relative_path

logger = logging.getLogger(__name__)


def is_relative_specifier(specifier: str) -> bool:
    """Only './' and '../' specifiers can point inside the project"""
    return specifier.startswith('./') or specifier.startswith('../')


def common_root(paths: Iterable[str]) -> Optional[str]:
    """Deepest directory containing every path, or None when there is none"""
    directories = [os.path.dirname(path) for path in paths]
    if not directories:
        return None
    try:
        return os.path.commonpath(directories)
    except ValueError:
        return None


def strip_extension(name: str) -> str:
    stem, _ = os.path.splitext(name)
    return stem or name


class ModuleResolver:
    """Resolves relative specifiers against a fixed set of module identities"""

    def __init__(self, module_paths: Iterable[str], project_root: Optional[str] = None,
                 extensions: Sequence[str] = DEFAULT_EXTENSIONS,
                 data_extensions: Sequence[str] = DEFAULT_DATA_EXTENSIONS):
        self.module_paths = list(module_paths)
        self.identities = frozenset(self.module_paths)
        self.project_root = project_root or common_root(self.module_paths)
        self.extensions = tuple(extensions)
        self.data_extensions = tuple(data_extensions)
        self.lookup = self._build_module_lookup()
        self.basename_index = self._build_basename_index()

    def _build_module_lookup(self) -> Dict[str, str]:
        """Map every known spelling of a module onto its identity"""
        lookup = {}
        for path in self.module_paths:
            lookup[path] = path
            lookup[relative_path(path, self.project_root)] = path
            stem, ext = os.path.splitext(path)
            if ext in self.extensions:
                lookup[stem] = path
            # Last write wins on collisions; only ever used as a hint
            lookup[os.path.basename(path)] = path
        return lookup

    def _build_basename_index(self) -> Dict[str, List[str]]:
        index: Dict[str, List[str]] = {}
        for path in sorted(self.module_paths):
            index.setdefault(strip_extension(os.path.basename(path)), []).append(path)
        return index

    def candidates(self, specifier: str, from_module: str) -> List[str]:
        """Paths probed for a relative specifier, in resolution order"""
        base = os.path.normpath(os.path.join(os.path.dirname(from_module), specifier))
        known = self.extensions + self.data_extensions
        index_probes = [os.path.join(base, 'index' + candidate) for candidate in known]

        # A directory specifier such as './lib/' only ever names an index file
        if specifier.endswith('/'):
            return index_probes

        probes = [base]
        _, ext = os.path.splitext(base)
        if ext in self.extensions:
            # './util.js' may name the TypeScript source that compiles to it
            stem = base[:-len(ext)]
            probes.extend(stem + sibling for sibling in self.extensions if sibling != ext)
        elif ext not in self.data_extensions:
            probes.extend(base + candidate for candidate in known)

        return probes + index_probes

    def resolve(self, specifier: str, from_module: str) -> Optional[str]:
        """Return the module a relative specifier points at, or None"""
        if not is_relative_specifier(specifier):
            return None
        for candidate in self.candidates(specifier, from_module):
            if candidate in self.identities:
                return candidate
        logger.debug(f"Could not resolve {specifier} from {from_module}")
        return None

    def lookup_hint(self, key: str) -> Optional[str]:
        """Best-effort lookup by any indexed spelling, for callers outside the analysis.

        Never used to resolve an import: basename keys collide and the last
        module written wins.
        """
        return self.lookup.get(key)
