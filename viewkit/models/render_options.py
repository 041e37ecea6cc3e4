"""Render option model shared by render, display and partial."""

from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from viewkit.exceptions import InvalidRenderOptionException

LayoutOption = str | bool | Callable[..., Any] | None


class RenderOptions(BaseModel):
    """Options recognised by the rendering layer.

    Unknown keys are kept as extras and passed through to object transforms
    (display) or exposed as partial locals (partial). ``with`` and ``as`` are
    Python keywords, so the fields are named ``with_`` and ``as_`` and accept
    either spelling.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, arbitrary_types_allowed=True)

    format: str | None = Field(default=None, description="Registered format to render as")
    template: str | None = Field(default=None, description="Template path relative to a template root")
    status: int | None = Field(default=None, description="Response status code")
    layout: LayoutOption = Field(default=None, description="Layout name, callable, or False for no layout")
    location: Any = Field(default=None, description="Value for the Location header")
    with_: Any = Field(default=None, alias="with", description="Object or objects a partial iterates over")
    as_: str | None = Field(default=None, alias="as", description="Local name for the current partial item")

    @classmethod
    def build(cls, *layers: "Mapping[str, Any] | RenderOptions | None") -> "RenderOptions":
        """Shallow-merge option layers, later layers winning, and validate the result.

        Raises:
            InvalidRenderOptionException: If a recognised option has an unusable value
        """
        merged: dict[str, Any] = {}
        for layer in layers:
            if layer is None:
                continue
            merged.update(layer.as_dict() if isinstance(layer, RenderOptions) else canonical_keys(layer))
        try:
            return cls.model_validate(merged)
        except ValidationError as e:
            error = e.errors()[0]
            option = ".".join(str(part) for part in error["loc"]) or None
            raise InvalidRenderOptionException(f"Invalid render option {option!r}: {error['msg']}", option) from e

    def as_dict(self) -> dict[str, Any]:
        """Return the explicitly set options keyed by their public names."""
        fields = type(self).model_fields
        data = {fields[name].alias or name: getattr(self, name) for name in self.model_fields_set if name in fields}
        data.update(self.model_extra or {})
        return data

    @property
    def extras(self) -> dict[str, Any]:
        """Pass-through options that are not recognised by the rendering layer."""
        return dict(self.model_extra or {})


# Public (aliased) name for each field
_ALIASES = {name: field.alias for name, field in RenderOptions.model_fields.items() if field.alias}


def canonical_keys(options: Mapping[str, Any]) -> dict[str, Any]:
    """Rename keyword-safe spellings (``with_``, ``as_``) to ``with`` and ``as``."""
    return {_ALIASES.get(key, key): value for key, value in options.items()}
