from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import pytest

PROJECT_ROOT = "/project"


class FactsBuilder:
    """Assemble module-fact maps the way the upstream parser emits them."""

    def __init__(self, root: str = PROJECT_ROOT) -> None:
        self.root = root
        self.modules: Dict[str, Dict[str, Any]] = {}

    def path(self, relative: str) -> str:
        return f"{self.root}/{relative}"

    def add(
        self,
        relative: str,
        imports: Iterable[Dict[str, Any]] = (),
        exports: Iterable[Dict[str, Any]] = (),
        file_type: str = "code",
    ) -> str:
        path = self.path(relative)
        self.modules[path] = {
            "fileType": file_type,
            "imports": list(imports),
            "exports": list(exports),
        }
        return path

    def build(self) -> Dict[str, Dict[str, Any]]:
        return dict(self.modules)

    @staticmethod
    def imp(source: str, *specifiers: Dict[str, Any], line: int = 1, kind: str = "import") -> Dict[str, Any]:
        return {"source": source, "type": kind, "line": line, "specifiers": list(specifiers)}

    @staticmethod
    def named(name: str, local: Optional[str] = None) -> Dict[str, Any]:
        return {"kind": "named", "importedName": name, "localName": local or name}

    @staticmethod
    def default(local: str = "value") -> Dict[str, Any]:
        return {"kind": "default", "localName": local}

    @staticmethod
    def namespace(local: str = "ns") -> Dict[str, Any]:
        return {"kind": "namespace", "localName": local}

    @staticmethod
    def export(name: str, line: int = 1, kind: Optional[str] = None) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": name, "line": line}
        if kind is not None:
            data["kind"] = kind
        return data

    @staticmethod
    def exports(*names: str) -> List[Dict[str, Any]]:
        return [FactsBuilder.export(name, line=index + 1) for index, name in enumerate(names)]


@pytest.fixture
def facts() -> FactsBuilder:
    """Provide an empty module-fact map rooted at /project."""
    return FactsBuilder()
