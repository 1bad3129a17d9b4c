"""Validation schema for Gin Rummy rules configuration."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal, Mapping, Optional, Union

from pydantic import BaseModel, Field, field_validator

# Two hands plus the upcard must come out of a 52-card deck with cards to spare.
MAX_HAND_SIZE = 25


class RuleSet(BaseModel):
    hand_size: int = Field(10, ge=1, description="Cards dealt to each player.")
    knock_threshold: int = Field(10, ge=0, description="Highest deadwood a player may knock with.")
    gin_bonus: int = Field(20, ge=0, description="Bonus added to the opponent's deadwood on gin.")
    undercut_bonus: int = Field(
        10,
        ge=0,
        description="Bonus awarded to a player who undercuts a knock; 0 scores the plain deadwood difference.",
    )
    max_first_turn_attempts: Optional[int] = Field(
        None,
        ge=1,
        description="Cap on tie-break reshuffles when choosing the first player; None retries forever.",
    )
    layoffs: Literal["defender_only", "both"] = Field(
        "defender_only",
        description="Which players may lay cards off onto the opponent's melds.",
    )
    layoff_after_gin: bool = Field(False, description="Whether layoffs are allowed after a gin.")

    @field_validator("hand_size")
    @classmethod
    def validate_hand_size(cls, value: int) -> int:
        if value > MAX_HAND_SIZE:
            raise ValueError(f"Hand size {value} does not fit in a 52-card deck.")
        return value


DEFAULT_RULES = RuleSet()


def load_rules(source: Union[Mapping, str, Path, None] = None) -> RuleSet:
    """Build a RuleSet from a mapping, a JSON file path, or the defaults."""
    if source is None:
        return RuleSet()
    if isinstance(source, Mapping):
        return RuleSet.model_validate(dict(source))
    payload = json.loads(Path(source).read_text(encoding="utf-8"))
    return RuleSet.model_validate(payload)
