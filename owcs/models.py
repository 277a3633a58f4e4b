"""Core data models shared across owcs components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .program.base import SourceFile

JSONSchema = Dict[str, Any]


class _Missing:
    """Marker for an absent default, distinct from an explicit ``null`` default."""

    _instance: Optional["_Missing"] = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_DEFAULT"

    def __bool__(self) -> bool:
        return False


NO_DEFAULT: Any = _Missing()


class PropSource(str, Enum):
    """Where a prop was declared."""

    DECLARED_INPUT = "declared-input"
    ATTRIBUTE = "attribute"


class EventKind(str, Enum):
    """How an event reaches the host page."""

    CUSTOM_NOTIFICATION = "custom-notification"
    EMITTER_OUTPUT = "emitter-output"


class EventSource(str, Enum):
    """Where an event was declared."""

    DISPATCH_CALL = "dispatch-call"
    DECLARED_OUTPUT = "declared-output"


@dataclass
class Registration:
    """A ``define(tag, definition)`` call discovered in source."""

    tag_name: str
    definition_name: str
    origin_file: "SourceFile"
    line: int = 0


@dataclass
class PropModel:
    """Configurable input of a component."""

    name: str
    wire_name: str
    schema: JSONSchema
    required: bool
    source: PropSource
    description: Optional[str] = None
    default: Any = NO_DEFAULT
    deprecated: bool = False
    tags: Dict[str, str] = field(default_factory=dict)

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "attribute": self.wire_name,
            "schema": self.schema,
            "required": self.required,
            "source": self.source.value,
        }
        if self.description:
            payload["description"] = self.description
        if self.has_default:
            payload["default"] = self.default
        if self.deprecated:
            payload["deprecated"] = True
        if self.tags:
            payload["tags"] = dict(self.tags)
        return payload


@dataclass
class EventModel:
    """Notification emitted by a component."""

    name: str
    kind: EventKind
    source: EventSource
    payload_schema: Optional[JSONSchema] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "type": self.kind.value,
            "source": self.source.value,
        }
        if self.payload_schema is not None:
            payload["payloadSchema"] = self.payload_schema
        return payload


@dataclass(frozen=True)
class ComponentModel:
    """Public surface of one registered custom element."""

    tag_name: str
    definition_name: str
    module_path: str
    props: Tuple[PropModel, ...] = ()
    events: Tuple[EventModel, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tagName": self.tag_name,
            "className": self.definition_name,
            "modulePath": self.module_path,
            "props": [prop.to_dict() for prop in self.props],
            "events": [event.to_dict() for event in self.events],
        }


@dataclass
class FederationModel:
    """Module federation settings read from the bundler configuration."""

    remote_name: str
    library_type: Optional[str] = None
    exposes: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"remoteName": self.remote_name}
        if self.library_type:
            payload["libraryType"] = self.library_type
        if self.exposes:
            payload["exposes"] = dict(self.exposes)
        return payload


@dataclass
class RuntimeModel:
    """Bundler/runtime wiring of the analyzed project."""

    bundler: str
    federation: Optional[FederationModel] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"bundler": self.bundler}
        if self.federation is not None:
            payload["federation"] = self.federation.to_dict()
        return payload


@dataclass
class IntermediateModel:
    """Everything the core hands to the document assembler."""

    runtime: RuntimeModel
    components: List[ComponentModel] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "runtime": self.runtime.to_dict(),
            "components": [component.to_dict() for component in self.components],
        }


@dataclass
class Diagnostic:
    """Advisory warning raised while analyzing a project."""

    code: str
    message: str
    file: Optional[str] = None
    symbol: Optional[str] = None
    line: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.file is not None:
            payload["file"] = self.file
        if self.symbol is not None:
            payload["symbol"] = self.symbol
        if self.line is not None:
            payload["line"] = self.line
        return payload

    def __str__(self) -> str:
        location = ""
        if self.file:
            location = self.file if self.line is None else f"{self.file}:{self.line}"
            location = f" ({location})"
        return f"{self.code}: {self.message}{location}"


@dataclass
class AnalysisResult:
    """Intermediate model plus the diagnostics collected while building it."""

    model: IntermediateModel
    diagnostics: List[Diagnostic] = field(default_factory=list)


__all__ = [
    "AnalysisResult",
    "ComponentModel",
    "Diagnostic",
    "EventKind",
    "EventModel",
    "EventSource",
    "FederationModel",
    "IntermediateModel",
    "JSONSchema",
    "NO_DEFAULT",
    "PropModel",
    "PropSource",
    "Registration",
    "RuntimeModel",
]
