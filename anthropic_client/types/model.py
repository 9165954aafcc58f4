"""
anthropic-client - Model Identifiers

``Model`` and ``StopReason`` are open enumerations: known values are named
constants, any other string parses to a wrapper holding the raw value.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import BaseModel

from .codec import OpenEnum


MODEL_ALIASES: Dict[str, str] = {
    "sonnet": "claude-sonnet-4-6",
    "opus": "claude-opus-4-6",
    "haiku": "claude-haiku-4-5",
}

EXTENDED_CONTEXT_SUFFIX = "[1m]"


class Model(OpenEnum):
    """
    Model identifier.

    ``Model.parse`` additionally resolves the short aliases ``sonnet``,
    ``opus`` and ``haiku``. Decoding from the wire never resolves aliases.
    """

    @classmethod
    def parse(cls, value: Any) -> "Model":
        if isinstance(value, str) and not isinstance(value, cls):
            value = MODEL_ALIASES.get(value, value)
        return cls._from_wire(value)

    @property
    def supports_extended_thinking(self) -> bool:
        """Haiku and Claude 3.x models other than 3.7 Sonnet lack extended thinking.

        Unknown models are assumed to support it; the API rejects them if not.
        """
        return self not in _NO_EXTENDED_THINKING


Model.CLAUDE_OPUS_4_6 = Model._member("claude-opus-4-6")
Model.CLAUDE_SONNET_4_6 = Model._member("claude-sonnet-4-6")
Model.CLAUDE_OPUS_4_5_20251101 = Model._member("claude-opus-4-5-20251101")
Model.CLAUDE_OPUS_4_5 = Model._member("claude-opus-4-5")
Model.CLAUDE_OPUS_4_1_20250805 = Model._member("claude-opus-4-1-20250805")
Model.CLAUDE_OPUS_4_0 = Model._member("claude-opus-4-0")
Model.CLAUDE_OPUS_4_20250514 = Model._member("claude-opus-4-20250514")
Model.CLAUDE_4_OPUS_20250514 = Model._member("claude-4-opus-20250514")
Model.CLAUDE_SONNET_4_5 = Model._member("claude-sonnet-4-5")
Model.CLAUDE_SONNET_4_5_20250929 = Model._member("claude-sonnet-4-5-20250929")
Model.CLAUDE_SONNET_4_0 = Model._member("claude-sonnet-4-0")
Model.CLAUDE_SONNET_4_20250514 = Model._member("claude-sonnet-4-20250514")
Model.CLAUDE_4_SONNET_20250514 = Model._member("claude-4-sonnet-20250514")
Model.CLAUDE_HAIKU_4_5 = Model._member("claude-haiku-4-5")
Model.CLAUDE_HAIKU_4_5_20251001 = Model._member("claude-haiku-4-5-20251001")
Model.CLAUDE_3_7_SONNET_LATEST = Model._member("claude-3-7-sonnet-latest")
Model.CLAUDE_3_7_SONNET_20250219 = Model._member("claude-3-7-sonnet-20250219")
Model.CLAUDE_3_5_HAIKU_LATEST = Model._member("claude-3-5-haiku-latest")
Model.CLAUDE_3_5_HAIKU_20241022 = Model._member("claude-3-5-haiku-20241022")
Model.CLAUDE_3_OPUS_LATEST = Model._member("claude-3-opus-latest")
Model.CLAUDE_3_OPUS_20240229 = Model._member("claude-3-opus-20240229")
Model.CLAUDE_3_HAIKU_20240307 = Model._member("claude-3-haiku-20240307")

_NO_EXTENDED_THINKING = frozenset({
    "claude-haiku-4-5",
    "claude-haiku-4-5-20251001",
    "claude-3-5-haiku-latest",
    "claude-3-5-haiku-20241022",
    "claude-3-opus-latest",
    "claude-3-opus-20240229",
    "claude-3-haiku-20240307",
})


class StopReason(OpenEnum):
    """Why the model stopped generating."""


StopReason.END_TURN = StopReason._member("end_turn")
StopReason.MAX_TOKENS = StopReason._member("max_tokens")
StopReason.STOP_SEQUENCE = StopReason._member("stop_sequence")
StopReason.TOOL_USE = StopReason._member("tool_use")
StopReason.PAUSE_TURN = StopReason._member("pause_turn")
StopReason.REFUSAL = StopReason._member("refusal")


@dataclass(frozen=True)
class ModelSpec:
    """
    A model string with option flags, e.g. ``"sonnet[1m]"``.

    The ``[1m]`` suffix requests the 1M-token context window.
    """

    model: Model
    extended_context: bool = False

    @classmethod
    def parse(cls, value: str) -> "ModelSpec":
        if value.endswith(EXTENDED_CONTEXT_SUFFIX):
            return cls(Model.parse(value[: -len(EXTENDED_CONTEXT_SUFFIX)]), True)
        return cls(Model.parse(value), False)


class ModelInfo(BaseModel):
    """Entry returned by the models endpoints."""

    id: str
    type: str = "model"
    display_name: str
    created_at: Optional[str] = None
