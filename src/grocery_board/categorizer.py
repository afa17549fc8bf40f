"""Rule-based routing of ingredient lines to board sections.

Rules are evaluated in order and the first match wins, so more specific
rules come first. The last rule matches everything and routes to the
fallback section, which guarantees a result for any input.
"""

import re
from dataclasses import dataclass
from types import MappingProxyType

from .item_normalizer import normalize_ingredient
from .models import Board, Classification, StoreKey
from .templates import FALLBACK_SECTION_ID, coerce_store_key, get_default_board


@dataclass(frozen=True)
class Rule:
    """Routes a normalized ingredient to a logical section id."""

    column_id: str
    keywords: frozenset[str] = frozenset()
    pattern: re.Pattern[str] | None = None

    def matches(self, normalized: str) -> bool:
        if any(keyword in normalized for keyword in self.keywords):
            return True
        return bool(self.pattern and self.pattern.search(normalized))


def _rule(column_id: str, *keywords: str) -> Rule:
    return Rule(column_id=column_id, keywords=frozenset(k.lower() for k in keywords))


RULES: tuple[Rule, ...] = (
    # Sections only some layouts have; remapped per store.
    _rule("agg", "ägg", "äggula", "äggulor", "äggvita", "äggvitor"),
    _rule("tacohyllan", "taco", "tortilla", "salsa", "tacokrydda", "tacosås", "nachochips"),
    _rule(
        "frukt_gront",
        "persilja", "basilika", "dill", "gräslök", "citron", "lime", "lök", "vitlök",
        "klyftor vitlök", "gul lök", "röd lök", "rödlök", "gullök", "schalottenlök",
        "tomat", "tomater", "potatis", "morot", "sallad", "paprika", "banan", "bananer",
        "äpple", "appelsin", "salladslök", "salladslökar", "ingefära", "pak choi",
        "avokado",
    ),
    _rule("chark", "pancetta", "bacon", "prosciutto", "salami", "skinka", "griskind"),
    _rule("protein", "lövbiff", "kyckling", "färs", "nötfärs", "fläsk", "tofu", "köttfärs"),
    _rule(
        "ost_palagg",
        "pecorino", "parmesan", "mozzarella", "burrata", "halloumi", "feta", "ost",
        "riven ost",
    ),
    _rule(
        "mejeri",
        "mjölk", "grädde", "vispgrädde", "crème fraîche", "creme fraiche", "yoghurt", "smör",
    ),
    _rule(
        "frysvaror",
        "köttbullar", "lax", "torsk", "kycklingklubbor", "kycklinigfilé",
        "kyckling innerlårfilé", "haricots verts",
    ),
    _rule(
        "skafferi",
        "vetemjöl", "mjöl", "pasta", "ris", "tomatpuré", "fond", "oxfond", "buljong",
        "salt", "flingsalt", "svartpeppar", "peppar", "olivolja", "rapsolja", "bulgur",
        "couscous", "tonfisk", "burkar tonfisk", "burk tonfisk", "dijonsenap", "oliver",
        "vitvinsvinäger", "vinäger", "bönor", "linser",
    ),
    _rule(
        "asiatiskt",
        "soja", "kinesisk soja", "japansk soja", "fisksås", "sesamolja", "miso",
        "sriracha", "nudlar", "glasnudlar",
    ),
    Rule(column_id=FALLBACK_SECTION_ID, pattern=re.compile(r".*")),
)

STORE_REMAP: MappingProxyType[StoreKey, MappingProxyType[str, str]] = MappingProxyType(
    {
        StoreKey.WILLYS: MappingProxyType({"agg": "mejeri", "tacohyllan": "asiatiskt"}),
        StoreKey.HEMKOP: MappingProxyType({}),
    }
)


def match_rule(normalized: str, rules: tuple[Rule, ...] = RULES) -> Rule | None:
    """Return the first rule matching a normalized ingredient."""
    for rule in rules:
        if rule.matches(normalized):
            return rule
    return None


def resolve_column_id(store: StoreKey, board: Board, suggested: str) -> str:
    """Map a logical section id to a section that exists on the board."""
    remapped = STORE_REMAP[store].get(suggested, suggested)
    if remapped in board.columns:
        return remapped
    if suggested in board.columns:
        return suggested
    return FALLBACK_SECTION_ID


def classify(
    raw_line: str,
    store: StoreKey | str | None = None,
    board: Board | None = None,
) -> Classification:
    """Suggest a section for a raw ingredient line.

    Args:
        raw_line: Ingredient text as written in a recipe
        store: Store layout whose remap table applies
        board: Board whose sections are eligible. Defaults to the store's
            default board.

    Returns:
        Classification with the section id and the normalized text
    """
    store_key = coerce_store_key(store)
    if board is None:
        board = get_default_board(store_key)

    normalized = normalize_ingredient(raw_line)
    rule = match_rule(normalized)
    suggested = rule.column_id if rule else FALLBACK_SECTION_ID
    return Classification(
        column_id=resolve_column_id(store_key, board, suggested),
        normalized=normalized,
    )
