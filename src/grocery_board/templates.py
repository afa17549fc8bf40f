"""Default section templates for each supported store layout."""

from types import MappingProxyType

from .models import Board, Section, StoreKey

DEFAULT_STORE = StoreKey.WILLYS

# Present in every template; unclassifiable items end up here.
FALLBACK_SECTION_ID = "ovrigt"

_BASE_LAYOUT: tuple[tuple[str, str], ...] = (
    ("frukt_gront", "Frukt & Grönt"),
    ("brod", "Bröd"),
    ("fika", "Fika"),
    ("chark", "Chark"),
    ("ost_palagg", "Ost/skinka/pålägg"),
    ("protein", "Protein (Färskt)"),
    ("mejeri", "Mejeri"),
    ("frysvaror", "Frysvaror"),
    ("asiatiskt", "All världens mat"),
    ("skafferi", "Skafferi"),
    ("snacks", "Snacks"),
    ("dryck", "Dryck"),
    ("stadvaror", "Städvaror"),
    ("barn", "Barn"),
    ("hygien", "Hygien"),
    ("frys_bar_glass", "Frys (bär/glass)"),
    (FALLBACK_SECTION_ID, "Övrigt"),
)


def _insert_after(
    layout: tuple[tuple[str, str], ...], anchor: str, entry: tuple[str, str]
) -> tuple[tuple[str, str], ...]:
    index = [section_id for section_id, _ in layout].index(anchor)
    return layout[: index + 1] + (entry,) + layout[index + 1 :]


_HEMKOP_LAYOUT = _insert_after(
    _insert_after(_BASE_LAYOUT, "mejeri", ("agg", "Ägg")),
    "asiatiskt",
    ("tacohyllan", "Tacohyllan"),
)

TEMPLATES: MappingProxyType[StoreKey, tuple[tuple[str, str], ...]] = MappingProxyType(
    {
        StoreKey.WILLYS: _BASE_LAYOUT,
        StoreKey.HEMKOP: _HEMKOP_LAYOUT,
    }
)


def coerce_store_key(value: str | StoreKey | None) -> StoreKey:
    """Map arbitrary input to a supported store, falling back to the default."""
    if isinstance(value, StoreKey):
        return value
    if not value:
        return DEFAULT_STORE
    try:
        return StoreKey(value.strip().lower())
    except ValueError:
        return DEFAULT_STORE


def template_section_ids(store: StoreKey) -> list[str]:
    """Section ids of a template in display order."""
    return [section_id for section_id, _ in TEMPLATES[store]]


def section_title(section_id: str, store: StoreKey | None = None) -> str:
    """Resolve a display title for a section id.

    Looks in the given store's template first, then in every template, and
    finally falls back to the id itself.
    """
    stores = [store] if store is not None else []
    stores += [key for key in TEMPLATES if key != store]
    for key in stores:
        for known_id, title in TEMPLATES[key]:
            if known_id == section_id:
                return title
    return section_id


def get_default_board(store: StoreKey | str | None = None) -> Board:
    """Build a fresh, empty board for a store layout."""
    layout = TEMPLATES[coerce_store_key(store)]
    return Board(
        items={},
        columns={
            section_id: Section(id=section_id, title=title, item_ids=[])
            for section_id, title in layout
        },
        column_order=[section_id for section_id, _ in layout],
    )
