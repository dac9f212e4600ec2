"""Data models for symbols, references and identifier occurrences."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class SymbolKind(str, Enum):
    FUNCTION = "function"
    CLASS = "class"
    INTERFACE = "interface"
    TYPE = "type"
    VARIABLE = "variable"
    METHOD = "method"


class ReferenceRole(str, Enum):
    DEFINITION = "definition"
    USAGE = "usage"


class Symbol(BaseModel):
    name: str
    kind: SymbolKind
    file_path: str
    line: int
    column: int
    preview: str = ""

    class Config:
        use_enum_values = True


class Reference(BaseModel):
    symbol: str
    file_path: str
    line: int
    column: int
    text: str
    role: ReferenceRole

    class Config:
        use_enum_values = True


class BindingKind(str, Enum):
    LOCAL = "local"
    IMPORT = "import"
    GLOBAL = "global"
    MEMBER = "member"


@dataclass(frozen=True)
class Binding:
    """What an identifier occurrence refers to.

    ``LOCAL`` bindings are identified by file, scope key and name.
    ``IMPORT`` bindings carry the importing file in ``file_path`` and the
    module specifier in ``scope``; ``name`` is the imported name ("*" for
    namespace imports). ``GLOBAL`` and ``MEMBER`` bindings are name-only.
    """
    kind: BindingKind
    name: str
    file_path: str = ""
    scope: str = ""

    @classmethod
    def local(cls, file_path: str, scope: str, name: str) -> "Binding":
        return cls(BindingKind.LOCAL, name, file_path, scope)

    @classmethod
    def imported(cls, file_path: str, specifier: str, name: str) -> "Binding":
        return cls(BindingKind.IMPORT, name, file_path, specifier)

    @classmethod
    def global_(cls, name: str) -> "Binding":
        return cls(BindingKind.GLOBAL, name)

    @classmethod
    def member(cls, name: str) -> "Binding":
        return cls(BindingKind.MEMBER, name)


@dataclass
class Occurrence:
    """One syntactic occurrence of an identifier in a unit."""
    name: str
    line: int
    column: int
    role: ReferenceRole
    text: str
    binding: Optional[Binding] = None

    def to_reference(self, file_path: str) -> Reference:
        return Reference(
            symbol=self.name,
            file_path=file_path,
            line=self.line,
            column=self.column,
            text=self.text,
            role=self.role,
        )


@dataclass
class ImportSpec:
    """An import statement's module specifier and the names it binds."""
    specifier: str
    line: int
    # imported name -> local alias
    names: dict[str, str]
