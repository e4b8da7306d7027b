"""
Halloween 2025 Event Catalog

The built-in four-location hunt. Hand-authored; a venue can replace it
with a catalog file (see events.loader).

Each location accepts two printed tokens:
- SPOOKYHUNT_<LOCATION>_2025 (poster QR codes)
- SERAM_<LOCATION> (short codes on the table tents)
"""

from ..engine_core.catalog import LocationCatalog
from ..engine_core.state import Floor, Location


def _codes(slug: str) -> frozenset[str]:
    return frozenset({f"SPOOKYHUNT_{slug}_2025", f"SERAM_{slug}"})


def create_halloween_catalog() -> LocationCatalog:
    """Create the Halloween 2025 location catalog."""
    return LocationCatalog([
        Location(
            id="main_lobby",
            name="Main Lobby",
            order=0,
            floor=Floor.GF,
            clue="Where every visitor first steps in, a giant pumpkin keeps watch.",
            accepted_codes=_codes("MAIN_LOBBY"),
            quiz_question="What color are the lanterns hanging above the main entrance?",
            quiz_options=("Orange", "Purple", "Green", "White"),
            correct_option_index=0,
        ),
        Location(
            id="south_lobby",
            name="South Lobby",
            order=1,
            floor=Floor.GF,
            clue="Follow the cobwebs south, where the fountain never sleeps.",
            accepted_codes=_codes("SOUTH_LOBBY"),
            quiz_question="How many ghosts float above the south fountain?",
            quiz_options=("Two", "Three", "Five", "Seven"),
            correct_option_index=1,
        ),
        Location(
            id="east_dome",
            name="East Dome",
            order=2,
            floor=Floor.UG,
            clue="Look up under the glass dome, where the bats gather at dusk.",
            accepted_codes=_codes("EAST_DOME"),
            quiz_question="What hangs from the center of the East Dome?",
            quiz_options=("A witch's broom", "A giant spider", "A crystal moon"),
            correct_option_index=1,
        ),
        Location(
            id="u_walk",
            name="U-Walk",
            order=3,
            floor=Floor.UG,
            clue="The final path bends like a horseshoe. The prize awaits at its end.",
            accepted_codes=_codes("U_WALK"),
            quiz_question="Which creature guards the end of the U-Walk?",
            quiz_options=("A skeleton", "A black cat"),
            correct_option_index=1,
        ),
    ])
