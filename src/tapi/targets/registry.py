from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType
from typing import Optional

from tapi.errors import TapiError
from tapi.graph.builder import TypesBuilder
from tapi.schema.node import SchemaNode
from tapi.targets import fs, js, ts


@dataclass(frozen=True)
class Target:
    name: str
    label: str
    extension: str
    renderer: ModuleType
    has_client: bool

    def builder(self) -> TypesBuilder:
        return self.renderer.builder()

    def full_ty_name(self, ty: SchemaNode) -> str:
        return self.renderer.full_ty_name(ty)

    def ty_decl(self, ty: SchemaNode) -> Optional[str]:
        return self.renderer.ty_decl(ty)


TARGETS: dict[str, Target] = {
    "ts": Target("ts", "TypeScript", ".ts", ts, has_client=True),
    "js": Target("js", "JavaScript (JSDoc)", ".js", js, has_client=True),
    "fs": Target("fs", "F#", ".fs", fs, has_client=False),
}


def get_target(name: str) -> Target:
    key = (name or "").strip().lower()
    if key not in TARGETS:
        raise TapiError(f"unknown target {name!r}; expected one of: {', '.join(TARGETS)}")
    return TARGETS[key]
