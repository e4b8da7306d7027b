"""
Catalog Loader - Reads a location catalog from a JSON file.

File format:

    {
      "event_name": "Halloween 2025",
      "locations": [
        {
          "id": "main_lobby",
          "order": 0,
          "floor": "GF",
          "clue": "...",
          "accepted_codes": ["SPOOKYHUNT_MAIN_LOBBY_2025", "SERAM_MAIN_LOBBY"],
          "quiz_question": "...",
          "quiz_options": ["A", "B", "C"],
          "correct_option_index": 0
        }
      ]
    }

Shape is checked by pydantic; catalog invariants by validate_catalog.
"""

from __future__ import annotations
from pathlib import Path
from typing import Optional
import json
import logging

from pydantic import BaseModel, Field, ValidationError as SchemaError

from ..engine_core.catalog import CatalogError, LocationCatalog, validate_catalog
from ..engine_core.state import Floor, Location

logger = logging.getLogger(__name__)


class LocationSchema(BaseModel):
    id: str = Field(min_length=1)
    order: int = Field(ge=0)
    floor: Floor
    clue: str = ""
    name: Optional[str] = None
    accepted_codes: list[str] = Field(min_length=1)
    quiz_question: str
    quiz_options: list[str] = Field(min_length=2, max_length=4)
    correct_option_index: int = Field(ge=0)

    def to_location(self) -> Location:
        return Location(
            id=self.id,
            order=self.order,
            floor=self.floor,
            clue=self.clue,
            accepted_codes=frozenset(self.accepted_codes),
            quiz_question=self.quiz_question,
            quiz_options=tuple(self.quiz_options),
            correct_option_index=self.correct_option_index,
            name=self.name or "",
        )


class CatalogFile(BaseModel):
    event_name: Optional[str] = None
    locations: list[LocationSchema]


def parse_catalog(payload: dict) -> LocationCatalog:
    """
    Build a validated catalog from a decoded JSON payload.

    Raises CatalogError listing every problem found.
    """
    try:
        parsed = CatalogFile.model_validate(payload)
    except SchemaError as exc:
        errors = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ]
        raise CatalogError(errors) from exc

    catalog = LocationCatalog(loc.to_location() for loc in parsed.locations)
    result = validate_catalog(catalog)
    for warning in result.warnings:
        logger.warning("Catalog warning: %s", warning)
    if not result.valid:
        raise CatalogError(result.errors)
    return catalog


def load_catalog(path: str | Path) -> LocationCatalog:
    """Load and validate a catalog file."""
    path = Path(path).expanduser()
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)
    catalog = parse_catalog(payload)
    logger.info("Loaded %d locations from %s", len(catalog), path)
    return catalog
