"""
Catalog lookup rules shared by imports, shortage reports and guided picking.

Works on anything with Product-like attributes (ORM rows or plain objects),
so the engines built on it can be exercised without a database.
"""
import re
from typing import Any, Iterable, List, Optional

_DIGITS = re.compile(r"(\d+)")


def normalize(value: Any) -> str:
    """Case/whitespace-insensitive comparison key"""
    if value is None:
        return ""
    return str(value).strip().casefold()


def natural_key(value: Optional[str]) -> list:
    """
    Numeric-aware sort key: "A2" < "A10", "B1-06-06" < "B1-06-10".

    re.split with a capture group alternates text/number chunks, so keys of
    two strings always compare str-to-str and int-to-int.
    """
    parts = _DIGITS.split(str(value or "").strip())
    return [int(p) if i % 2 else p.casefold() for i, p in enumerate(parts)]


def location_sort_key(location: Optional[str]) -> tuple:
    """Items with a location first, then numeric-aware by location"""
    if location and str(location).strip():
        return (0, natural_key(location))
    return (1, [])


class CatalogIndex:
    """Indexes a product list once; first product wins on duplicate keys"""

    def __init__(self, products: Iterable[Any]):
        self.products: List[Any] = list(products)
        self._by_name = {}
        self._by_part_code = {}
        self._by_part_code_exact = {}
        self._by_short_id = {}
        self._by_barcode = {}
        for p in self.products:
            self._by_name.setdefault(normalize(p.product_name), p)
            part_code = getattr(p, "part_code", None)
            if part_code and str(part_code).strip():
                self._by_part_code.setdefault(normalize(part_code), p)
                self._by_part_code_exact.setdefault(str(part_code).strip(), p)
            short_id = getattr(p, "short_id", None)
            if short_id:
                self._by_short_id.setdefault(str(short_id).strip(), p)
            barcode = getattr(p, "barcode", None)
            if barcode:
                self._by_barcode.setdefault(str(barcode).strip(), p)

    def by_name(self, name: Any) -> Optional[Any]:
        key = normalize(name)
        return self._by_name.get(key) if key else None

    def by_part_code(self, part_code: Any) -> Optional[Any]:
        key = normalize(part_code)
        return self._by_part_code.get(key) if key else None

    def by_part_code_exact(self, part_code: Any) -> Optional[Any]:
        if part_code is None:
            return None
        return self._by_part_code_exact.get(str(part_code).strip())

    def match_item(self, part_code: Optional[str], name: Optional[str]) -> Optional[Any]:
        """
        Resolve a demand line to a product.

        Part code first, then name, then a name column that actually holds a
        part code. No fuzzy matching.
        """
        if part_code:
            product = self.by_part_code(part_code)
            if product is not None:
                return product
        product = self.by_name(name)
        if product is not None:
            return product
        return self.by_part_code(name)

    def resolve_code(self, code: Any) -> Optional[Any]:
        """Scanned code lookup: short_id, then barcode, then part code"""
        clean = str(code or "").strip()
        if not clean:
            return None
        return (
            self._by_short_id.get(clean)
            or self._by_barcode.get(clean)
            or self._by_part_code_exact.get(clean)
        )
