"""Fold recognizer result slots into one utterance per recognition pass."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..services.schemas import RecognitionResult


@dataclass(frozen=True, slots=True)
class Transcript:
    final: str = ""
    interim: str = ""

    @property
    def display(self) -> str:
        """Text shown while the user speaks."""
        return self.interim or self.final


def normalize(result_index: int, results: Sequence[RecognitionResult]) -> Transcript:
    final = ""
    interim = ""
    for result in results[max(0, result_index):]:
        if not result.alternatives:
            continue
        text = result.alternatives[0].transcript.strip().lower()
        if result.is_final:
            final += text
        else:
            interim += text
    return Transcript(final=final, interim=interim)
