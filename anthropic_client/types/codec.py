"""
anthropic-client - Union Codec

Decoding/encoding discipline shared by every polymorphic payload type.

Three shapes are supported:

- Tagged unions: the wire object carries a ``type`` discriminant. Decoding
  reads the discriminant first and validates against the matching variant.
  A discriminant that no variant declares routes to the union's ``Unknown*``
  variant, which keeps the raw discriminant and every other field so the
  object re-encodes unchanged.
- Untagged unions: candidates are tried left to right and the first
  structural match wins. Stricter variants must be declared before looser
  ones; the order of each untagged union is documented where it is defined.
- Open enumerations: string identifiers with named constants for known
  values. Any other string parses to a plain instance holding the raw value.
"""

from typing import Annotated, Any, ClassVar, Dict, Optional, Tuple, Type, Union, get_args

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    ValidationError,
)
from pydantic_core import core_schema

from ..core.errors import SerializationFailure


UNKNOWN_TAG = "__unknown__"

# TypeAdapters are comparatively expensive to build; keep one per union type.
_adapters: Dict[int, Tuple[Any, TypeAdapter]] = {}


class UnknownVariant(BaseModel):
    """
    Catch-all variant for a tagged union.

    Holds the raw discriminant in ``type`` and keeps every other field of the
    original object as extra data. Consumers should treat it as "a kind this
    client does not know yet", never as an error.
    """

    model_config = ConfigDict(extra="allow")

    type: str

    @property
    def is_unknown(self) -> bool:
        return True

    @property
    def raw(self) -> Dict[str, Any]:
        """The original wire object."""
        return self.model_dump(mode="json")


def variant_tag(model: Type[BaseModel], tag_field: str = "type") -> str:
    """Return the literal discriminant declared by a variant model."""
    field_info = model.model_fields[tag_field]
    values = get_args(field_info.annotation)
    if len(values) != 1 or not isinstance(values[0], str):
        raise TypeError(
            f"{model.__name__}.{tag_field} must be declared as a single Literal"
        )
    return values[0]


def tagged_union(
    *variants: Type[BaseModel],
    unknown: Type[UnknownVariant],
    tag_field: str = "type",
) -> Any:
    """
    Build a tagged union annotation.

    Args:
        variants: Variant models, each declaring ``type: Literal["..."]``
        unknown: Catch-all model used for unrecognized discriminants
        tag_field: Name of the discriminant field

    Returns:
        An ``Annotated`` type usable as a pydantic field annotation or with
        ``decode``/``encode``.
    """
    known = {variant_tag(v, tag_field): v for v in variants}

    def _discriminate(value: Any) -> Optional[str]:
        if isinstance(value, dict):
            raw = value.get(tag_field)
        else:
            raw = getattr(value, tag_field, None)
        if raw is None:
            return None
        if isinstance(raw, str) and raw in known:
            return raw
        return UNKNOWN_TAG

    members = tuple(Annotated[model, Tag(tag)] for tag, model in known.items())
    members += (Annotated[unknown, Tag(UNKNOWN_TAG)],)
    return Annotated[Union[members], Discriminator(_discriminate)]


def untagged_union(*candidates: Any) -> Any:
    """
    Build an untagged union annotation decoded in declared order.

    The first candidate that validates wins, so stricter candidates must come
    before catch-all ones.
    """
    return Annotated[Union[candidates], Field(union_mode="left_to_right")]


def _adapter(tp: Any) -> TypeAdapter:
    cached = _adapters.get(id(tp))
    if cached is None or cached[0] is not tp:
        cached = (tp, TypeAdapter(tp))
        _adapters[id(tp)] = cached
    return cached[1]


def decode(tp: Any, data: Any) -> Any:
    """
    Decode a JSON-compatible value into ``tp``.

    Raises:
        SerializationFailure: The value matches none of the expected shapes
    """
    try:
        return _adapter(tp).validate_python(data)
    except ValidationError as e:
        raise SerializationFailure(
            f"Payload does not match {getattr(tp, '__name__', tp)!s}: {e.error_count()} error(s)",
            payload=data,
            cause=e,
        ) from e


def decode_json(tp: Any, text: Union[str, bytes]) -> Any:
    """Decode raw JSON text into ``tp``."""
    try:
        return _adapter(tp).validate_json(text)
    except ValidationError as e:
        raise SerializationFailure(
            f"JSON payload does not match the expected shape: {e.error_count()} error(s)",
            payload=text,
            cause=e,
        ) from e


def encode(value: Any, exclude_none: bool = False) -> Any:
    """Encode a model (or container of models) to JSON-compatible data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=exclude_none, by_alias=True)
    if isinstance(value, (list, tuple)):
        return [encode(v, exclude_none=exclude_none) for v in value]
    if isinstance(value, dict):
        return {k: encode(v, exclude_none=exclude_none) for k, v in value.items()}
    if isinstance(value, OpenEnum):
        return str(value)
    return value


class OpenEnum(str):
    """
    String identifier with named constants for known values.

    Subclasses register known values with ``_member``. ``parse`` never fails
    for a string: unknown values produce an instance holding the raw string.

    Example:
        >>> Model.parse("claude-sonnet-4-6") is Model.CLAUDE_SONNET_4_6
        True
        >>> Model.parse("claude-next").is_known
        False
    """

    _known: ClassVar[Dict[str, "OpenEnum"]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._known = {}

    @classmethod
    def _member(cls, value: str) -> "OpenEnum":
        member = str.__new__(cls, value)
        cls._known[value] = member
        return member

    @classmethod
    def parse(cls, value: Any) -> "OpenEnum":
        return cls._from_wire(value)

    @classmethod
    def _from_wire(cls, value: Any) -> "OpenEnum":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise TypeError(f"{cls.__name__} expects a string, got {type(value).__name__}")
        return cls._known.get(value) or str.__new__(cls, value)

    @classmethod
    def known_values(cls) -> Tuple[str, ...]:
        return tuple(cls._known)

    @property
    def is_known(self) -> bool:
        return str.__str__(self) in type(self)._known

    @property
    def value(self) -> str:
        return str.__str__(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str.__repr__(self)})"

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: Any) -> core_schema.CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls._from_wire,
            core_schema.str_schema(),
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda v: str.__str__(v)
            ),
        )
