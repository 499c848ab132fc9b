"""
Typed views over a block's metadata bag.

The bag itself is stored verbatim on the block so it round-trips losslessly.
These variants give each block type a typed shape, with LegacyMetadata as
the fallback for types that carry no known schema or bags that fail to
validate.
"""

import logging
from typing import Any, Dict, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class BlockMetadata(BaseModel):
    """Base for all metadata variants. Unknown keys are kept."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class CodeMetadata(BlockMetadata):
    """Metadata of a code block."""

    language: str = Field(
        default="javascript",
        description="Language used for highlighting and execution"
    )


class TimerMetadata(BlockMetadata):
    """Metadata of a timer block. The elapsed seconds live in the block content."""

    state: Literal["running", "stopped"] = Field(
        default="stopped",
        description="Whether the timer is currently counting"
    )

    last_start: Optional[int] = Field(
        default=None,
        alias="lastStart",
        description="Milliseconds since epoch when the timer was last started"
    )


class LegacyMetadata(BlockMetadata):
    """Untyped fallback variant."""


METADATA_VARIANTS: Dict[str, Type[BlockMetadata]] = {
    "code": CodeMetadata,
    "timer": TimerMetadata,
}


def parse_metadata(block_type: str, raw: Optional[Dict[str, Any]]) -> BlockMetadata:
    """
    Build the typed metadata variant for a block type.

    Args:
        block_type: The block's type tag
        raw: The stored attribute bag

    Returns:
        The matching variant, or LegacyMetadata if the type has no variant
        or the bag does not validate against it
    """
    variant = METADATA_VARIANTS.get(str(block_type), LegacyMetadata)
    try:
        return variant.model_validate(raw or {})
    except ValidationError as e:
        logging.warning(f"Metadata for {block_type} block did not validate, using legacy view: {e}")
        return LegacyMetadata.model_validate(raw or {})
