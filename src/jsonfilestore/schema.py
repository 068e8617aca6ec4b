from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Generic, Protocol, TypeVar, runtime_checkable

import pydantic
from pydantic import BaseModel, Field

from .exceptions import ValidationError

M = TypeVar("M", bound=BaseModel)


@runtime_checkable
class Validator(Protocol):
    """Validation capability consumed by :class:`~jsonfilestore.JsonFileStore`.

    Both methods return plain JSON-compatible dictionaries and raise
    :class:`~jsonfilestore.exceptions.ValidationError` on invalid input.
    """

    def parse(self, data: Any) -> dict[str, Any]:
        """Validate a complete record."""

    def parse_partial(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Validate only the fields present in ``data``."""


class PydanticValidator(Generic[M]):
    """:class:`Validator` backed by a Pydantic model.

    Parameters
    ----------
    model:
        Pydantic model describing a full record. Defaults declared on the
        model are applied by :meth:`parse` but not by :meth:`parse_partial`.
        Both modes key their output by alias, so stored records validate
        again under the same names.
    """

    def __init__(self, model: type[M]) -> None:
        self.model = model
        self._partial_model = _partial_model(model)

    def parse(self, data: Any) -> dict[str, Any]:
        try:
            instance = self.model.model_validate(data)
        except pydantic.ValidationError as exc:
            raise _wrap(exc) from exc
        return instance.model_dump(mode="json", by_alias=True)

    def parse_partial(self, data: Mapping[str, Any]) -> dict[str, Any]:
        try:
            instance = self._partial_model.model_validate(dict(data))
        except pydantic.ValidationError as exc:
            raise _wrap(exc) from exc
        return instance.model_dump(mode="json", by_alias=True, exclude_unset=True)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.model.__name__})"


def _partial_model(model: type[M]) -> type[M]:
    # Defaults are never validated, so a ``None`` default makes every field
    # optional while supplied values still go through the original annotation.
    # Field validators are inherited from ``model`` by name.
    fields: dict[str, Any] = {}
    for name, info in model.model_fields.items():
        annotation = info.annotation
        if info.metadata:
            annotation = Annotated[(annotation, *info.metadata)]
        fields[name] = (
            annotation,
            Field(
                default=None,
                alias=info.alias,
                validation_alias=info.validation_alias,
                serialization_alias=info.serialization_alias,
            ),
        )
    return pydantic.create_model(f"Partial{model.__name__}", __base__=model, **fields)


def _wrap(exc: pydantic.ValidationError) -> ValidationError:
    return ValidationError(str(exc), errors=exc.errors(include_url=False))


def as_validator(schema: type[BaseModel] | Validator) -> Validator:
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return PydanticValidator(schema)
    if isinstance(schema, Validator):
        return schema
    raise TypeError(
        f"schema must be a pydantic model class or a Validator, got {type(schema).__name__}"
    )
