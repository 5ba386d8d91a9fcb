"""Table name normalization for physical and logical names.

Spreadsheet and PDF imports get machine-generated physical names
(``ds2_42d115c3``) while users see a logical name such as
``"Order Items - ecommerce.xlsx"``. Columns like ``order_item_id`` must
resolve to such a table through either name, so every table is registered
under all of its singular, plural, spaced and underscored variants.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional

from joinscout.core.types import TableSchema
from joinscout.utils.logging import get_logger

logger = get_logger(__name__)

IRREGULAR_SINGULARS = {
    "people": "person",
    "children": "child",
    "men": "man",
    "women": "woman",
}

_FILE_EXTENSIONS = r"(?:xlsx?|csv|pdf|txt)"
_FILENAME_SUFFIX_RE = re.compile(rf"\s*-\s*[^-]+\.{_FILE_EXTENSIONS}$", re.IGNORECASE)
_EXTENSION_RE = re.compile(rf"\.{_FILE_EXTENSIONS}$", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")


def get_singular(word: str) -> str:
    """Convert a plural name to singular (lower-cased).

    Examples:
        >>> get_singular("categories")
        'category'
        >>> get_singular("boxes")
        'box'
        >>> get_singular("People")
        'person'
    """
    if not word:
        return word

    lower = word.lower()

    if lower in IRREGULAR_SINGULARS:
        return IRREGULAR_SINGULARS[lower]
    if lower.endswith("ies"):
        return lower[:-3] + "y"
    if lower.endswith("es"):
        return lower[:-2]
    if lower.endswith("s"):
        return lower[:-1]

    return lower


def get_plural(word: str) -> str:
    """Add a trailing ``s`` unless the (lower-cased) word already ends in one."""
    if not word:
        return word
    lower = word.lower()
    return lower if lower.endswith("s") else lower + "s"


def clean_logical_name(name: str) -> str:
    """Strip file names and extensions from a logical table name.

    ``"Products - ecommerce.xlsx"`` becomes ``"products"`` and
    ``"Orders.csv"`` becomes ``"orders"``.
    """
    cleaned = name.lower()
    cleaned = _FILENAME_SUFFIX_RE.sub("", cleaned)
    cleaned = _EXTENSION_RE.sub("", cleaned)
    return cleaned.strip()


def name_variants(name: str) -> List[str]:
    """All lookup keys for a logical name, most specific first.

    Args:
        name: Logical (or physical) table name

    Returns:
        Ordered, de-duplicated list of lower-case variants
    """
    cleaned = clean_logical_name(name)
    if not cleaned:
        return []

    underscored = _WHITESPACE_RE.sub("_", cleaned)
    compact = _WHITESPACE_RE.sub("", cleaned)

    variants: List[str] = []
    for base in (cleaned, underscored, compact):
        for candidate in (base, get_singular(base), get_plural(base)):
            if candidate and candidate not in variants:
                variants.append(candidate)
    return variants


def resolve_physical(token: str, tables: Iterable[TableSchema]) -> Optional[TableSchema]:
    """Resolve a name token against physical table names.

    Matches the exact name, ``token + "s"`` or the singular of the token,
    case-insensitively. The first matching table in input order wins.
    """
    token = token.lower()
    singular = get_singular(token)
    for table in tables:
        physical = table.table_name.lower()
        if physical in (token, token + "s", singular):
            return table
    return None


class NameNormalizer:
    """Case-insensitive map from every name variant to its table.

    Example:
        >>> normalizer = NameNormalizer(tables)
        >>> normalizer.resolve("order_item")
        TableSchema(dra_excel.ds2_42d115c3, columns=4)
    """

    def __init__(self, tables: Iterable[TableSchema]):
        """Build the lookup map.

        Args:
            tables: Tables to register; the logical name is used when
                present, otherwise the physical name
        """
        self._map: Dict[str, TableSchema] = {}
        self._collisions = 0

        for table in tables:
            self.register(table)

        logger.debug(
            f"Logical name map contains {len(self._map)} entries "
            f"({self._collisions} collisions ignored)"
        )

    def register(self, table: TableSchema) -> None:
        """Register all variants of a table's logical name.

        A variant already claimed by an earlier table keeps its first owner.
        """
        for variant in name_variants(table.label):
            owner = self._map.get(variant)
            if owner is None:
                self._map[variant] = table
            elif owner is not table:
                self._collisions += 1
                logger.debug(
                    f"Name variant '{variant}' of {table.table_name} already "
                    f"maps to {owner.table_name}, keeping the first"
                )

    def get(self, key: str) -> Optional[TableSchema]:
        return self._map.get(key.lower())

    def resolve(self, token: str) -> Optional[TableSchema]:
        """Resolve a name token (e.g. a column prefix) to a table.

        Tries the token itself, its singular and plural forms, and the same
        with underscores and spaces swapped. The plural covers names the
        singularizer cannot invert (``courses`` registers as ``cours``).
        """
        token = token.lower().strip()
        if not token:
            return None

        spaced = token.replace("_", " ")
        underscored = _WHITESPACE_RE.sub("_", token)
        candidates = (
            token,
            get_singular(token),
            get_plural(token),
            underscored,
            spaced,
            get_singular(spaced),
            get_plural(spaced),
        )
        for candidate in candidates:
            table = self._map.get(candidate)
            if table is not None:
                return table
        return None

    def keys(self) -> List[str]:
        return list(self._map.keys())

    def __contains__(self, key: str) -> bool:
        return key.lower() in self._map

    def __len__(self) -> int:
        return len(self._map)
