"""
Analysis result returned by the AI service.

The session controller stores and forwards this payload without interpreting
it; only the result views read individual fields. Field names on the wire are
camelCase, attributes are snake_case.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PartyMatch(_WireModel):
    party: str
    score: int
    reason: str
    strongest_agreements: list[str] = Field(default_factory=list)
    strongest_disagreements: list[str] = Field(default_factory=list)


class CategoryScore(_WireModel):
    category: str
    score: int
    description: str


class Coordinates(_WireModel):
    """Left (-100) to right (100) on x, GAL (-100) to TAN (100) on y."""

    x: float
    y: float


class PartyPosition(_WireModel):
    party_id: str
    x: float
    y: float


class Coalition(_WireModel):
    parties: list[str]
    total_match: int
    description: str


class DevilAdvocate(_WireModel):
    question_text: str
    user_stance: str
    counter_argument: str


class HistoricalContext(_WireModel):
    topic: str
    comparison: str


class AnalysisResult(_WireModel):
    summary: str
    matches: list[PartyMatch]
    category_scores: list[CategoryScore] = Field(default_factory=list)
    coordinates: Coordinates
    party_positions: list[PartyPosition] = Field(default_factory=list)
    coalitions: list[Coalition] = Field(default_factory=list)
    devil_advocate: DevilAdvocate
    historical_context: HistoricalContext

    def to_dict(self) -> dict:
        """Convert to the camelCase dictionary used on the wire and on disk."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_dict(cls, data: dict) -> "AnalysisResult":
        return cls.model_validate(data)

    def ranked_matches(self) -> list[PartyMatch]:
        """Party matches, best first."""
        return sorted(self.matches, key=lambda m: m.score, reverse=True)


# Riksdag parties the analysis is asked to place (id, name, short label)
PARTIES: list[dict[str, str]] = [
    {"id": "v", "name": "Vänsterpartiet", "short": "V"},
    {"id": "s", "name": "Socialdemokraterna", "short": "S"},
    {"id": "mp", "name": "Miljöpartiet", "short": "MP"},
    {"id": "c", "name": "Centerpartiet", "short": "C"},
    {"id": "l", "name": "Liberalerna", "short": "L"},
    {"id": "m", "name": "Moderaterna", "short": "M"},
    {"id": "kd", "name": "Kristdemokraterna", "short": "KD"},
    {"id": "sd", "name": "Sverigedemokraterna", "short": "SD"},
]


def party_name(party_id: str) -> str:
    """Display name for a party id, falling back to the id itself."""
    for party in PARTIES:
        if party["id"] == party_id.lower():
            return party["name"]
    return party_id
