"""
Region directory - read-only lookup over the compiled-in catalog

search():   case-insensitive substring match over "[CODE] Name", catalog order
is_valid(): exact, case-insensitive code membership
"""
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from pitor.lib.regions.catalog import CATALOG


@dataclass(frozen=True)
class Region:
    code: str
    name: str

    @property
    def rendered(self) -> str:
        return f"[{self.code}] {self.name}"

    def __str__(self) -> str:
        return self.rendered


class RegionDirectory:
    """Immutable catalog of exit regions"""

    def __init__(self, entries: Iterable[Tuple[str, str]]) -> None:
        self._regions: Tuple[Region, ...] = tuple(Region(code.upper(), name) for code, name in entries)
        self._by_code: Dict[str, Region] = {}
        for region in self._regions:
            if region.code in self._by_code:
                raise ValueError(f"duplicate region code: {region.code}")
            self._by_code[region.code] = region

    def __len__(self) -> int:
        return len(self._regions)

    def __iter__(self) -> Iterator[Region]:
        return iter(self._regions)

    def search(self, keyword: str) -> List[Region]:
        """Every entry whose rendered form contains keyword, ignoring case

        An empty keyword is a substring of everything and lists the whole catalog.
        """
        needle = keyword.casefold()
        return [r for r in self._regions if needle in r.rendered.casefold()]

    def get(self, code: str) -> Optional[Region]:
        # str.upper() maps some single characters to two letters ("ß" -> "SS")
        if len(code) != 2 or not code.isascii():
            return None
        return self._by_code.get(code.upper())

    def is_valid(self, code: str) -> bool:
        return self.get(code) is not None


# ── Default directory ───────────────────────────────────────
DIRECTORY = RegionDirectory(CATALOG)
