"""Address autocomplete schemas."""

from __future__ import annotations

from pydantic import BaseModel

from ..services.geocoding import PlaceSuggestion


class PlaceSuggestionModel(BaseModel):
    label: str
    place_id: str
    main_text: str
    secondary_text: str

    @classmethod
    def from_domain(cls, suggestion: PlaceSuggestion) -> "PlaceSuggestionModel":
        return cls(
            label=suggestion.label,
            place_id=suggestion.place_id,
            main_text=suggestion.main_text,
            secondary_text=suggestion.secondary_text,
        )
