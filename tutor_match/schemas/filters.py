from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import FrozenSet, Iterable, List, Optional, Tuple

from tutor_match.core.config import settings
from tutor_match.core.slots import TimeBlock, block_from_label, slots_for_blocks
from tutor_match.core.weekdays import DayOfWeek, day_from_label


class DayTimeSelection(BaseModel):
    """Selected weekdays and time blocks; an empty axis means no constraint"""
    model_config = ConfigDict(frozen=True)

    days: FrozenSet[DayOfWeek] = Field(default_factory=frozenset, description="Selected weekdays")
    blocks: FrozenSet[TimeBlock] = Field(default_factory=frozenset, description="Selected time blocks")

    @classmethod
    def from_labels(
        cls,
        day_labels: Iterable[str] = (),
        block_labels: Iterable[str] = ()
    ) -> "DayTimeSelection":
        """Build a selection from UI labels; unknown labels raise"""
        return cls(
            days=frozenset(day_from_label(label) for label in day_labels),
            blocks=frozenset(block_from_label(label) for label in block_labels),
        )

    @property
    def is_unconstrained(self) -> bool:
        return not self.days and not self.blocks

    def with_days(self, days: Iterable[DayOfWeek]) -> "DayTimeSelection":
        return self.model_copy(update={"days": frozenset(DayOfWeek(d) for d in days)})

    def with_blocks(self, blocks: Iterable[TimeBlock]) -> "DayTimeSelection":
        return self.model_copy(update={"blocks": frozenset(TimeBlock(b) for b in blocks)})

    def toggle_day(self, day: DayOfWeek) -> "DayTimeSelection":
        return self.with_days(self.days ^ {DayOfWeek(day)})

    def toggle_block(self, block: TimeBlock) -> "DayTimeSelection":
        return self.with_blocks(self.blocks ^ {TimeBlock(block)})

    def sorted_days(self) -> List[DayOfWeek]:
        return sorted(self.days)

    def slot_indexes(self) -> List[int]:
        """Slots of the selected blocks, for sending to the server"""
        return sorted(slots_for_blocks(self.blocks))


class PriceRange(BaseModel):
    """Inclusive price range.

    Values are clamped to the configured floor and ceiling, and an inverted
    range is swapped, on every construction and update.
    """
    model_config = ConfigDict(frozen=True)

    min_price: float = Field(..., description="Lowest accepted price")
    max_price: float = Field(..., description="Highest accepted price")

    @model_validator(mode="before")
    @classmethod
    def _clamp_and_order(cls, data):
        if not isinstance(data, dict):
            return data
        floor, ceiling = settings.PRICE_FLOOR, settings.PRICE_CEILING
        low = data.get("min_price", floor)
        high = data.get("max_price", ceiling)
        low = floor if low is None else min(max(float(low), floor), ceiling)
        high = ceiling if high is None else min(max(float(high), floor), ceiling)
        if low > high:
            low, high = high, low
        return {**data, "min_price": low, "max_price": high}

    @classmethod
    def unconstrained(cls) -> "PriceRange":
        return cls(min_price=settings.PRICE_FLOOR, max_price=settings.PRICE_CEILING)

    def with_min(self, value: float) -> "PriceRange":
        return PriceRange(min_price=value, max_price=self.max_price)

    def with_max(self, value: float) -> "PriceRange":
        return PriceRange(min_price=self.min_price, max_price=value)


def _default_price_range() -> PriceRange:
    return PriceRange.unconstrained()


class QueryFilters(BaseModel):
    model_config = ConfigDict(frozen=True)

    selection: DayTimeSelection = Field(default_factory=DayTimeSelection, description="Day and time filter")
    price_range: PriceRange = Field(default_factory=_default_price_range, description="Price filter")
    primary_language: Optional[str] = Field(None, description="Primary language code")
    search_term: Optional[str] = Field(None, description="Free-text search by name")
    language_codes: Tuple[str, ...] = Field(default=(), description="Spoken language codes")

    @field_validator("primary_language", "search_term")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = " ".join(value.split())
        return value or None


class PageQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int = Field(1, ge=1, description="1-based page number")
    page_size: int = Field(..., ge=1, description="Number of tutors per page")
    filters: QueryFilters = Field(default_factory=QueryFilters, description="Active filters")
