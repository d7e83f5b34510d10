"""
Type definitions for the decoding module.

A decode request always ends in exactly one of two shapes: Decoded (a
non-empty payload) or NotFound. "No marker" is a value, never an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

from preprocessing import DecodeAttempt

NotFoundReason = Literal["invalid_image", "exhausted"]


@dataclass(frozen=True)
class Decoded:
    """A marker payload and the attempt that produced it.

    Attributes:
        text: Decoded payload, never empty.
        attempt: The attempt whose image the decoder read.
        evaluated: Every attempt scanned, in order, ending with ``attempt``.
    """

    text: str
    attempt: DecodeAttempt
    evaluated: tuple[DecodeAttempt, ...] = ()

    def __post_init__(self) -> None:
        if not self.text:
            raise ValueError("Decoded text must not be empty")

    @property
    def found(self) -> bool:
        return True

    @property
    def attempts_tried(self) -> int:
        return len(self.evaluated)


@dataclass(frozen=True)
class NotFound:
    """No attempt produced a payload.

    Attributes:
        reason: "invalid_image" when the source could not be read (no attempt
                ran), "exhausted" when every attempt failed.
        evaluated: Every attempt scanned, in order.
    """

    reason: NotFoundReason = "exhausted"
    evaluated: tuple[DecodeAttempt, ...] = ()

    @property
    def found(self) -> bool:
        return False

    @property
    def attempts_tried(self) -> int:
        return len(self.evaluated)


DecodeOutcome = Union[Decoded, NotFound]
