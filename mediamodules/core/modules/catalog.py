from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional

from mediamodules.core.errors import InvalidRecord
from mediamodules.core.modules.models import RESTRICTED_PREFIX, CatalogEntry


OPEN_H264_ID = "gmp-gmpopenh264"
EME_ADOBE_ID = "gmp-eme-adobe"

DEFAULT_ENTRIES = (
    CatalogEntry(
        id=OPEN_H264_ID,
        name="OpenH264 Video Codec provided by Cisco Systems, Inc.",
        description="This plugin is automatically installed by Mozilla to comply with the WebRTC specification "
        "and to enable WebRTC calls with devices that require the H.264 video codec.",
        homepage_url="http://www.openh264.org/",
        license_url="http://www.openh264.org/license.txt",
    ),
    CatalogEntry(
        id=EME_ADOBE_ID,
        name="Primetime Content Decryption Module provided by Adobe Systems, Incorporated",
        description="Play back protected web video.",
        homepage_url="http://help.adobe.com/en_US/primetime/drm/HTML5_CDM",
        license_url="http://help.adobe.com/en_US/primetime/drm/HTML5_CDM_EULA/index.html",
    ),
)


def is_restricted(module_id: str) -> bool:
    return str(module_id or "").startswith(RESTRICTED_PREFIX)


class ModuleCatalog:
    """
    Fixed, ordered set of known modules. Lookups of unknown ids raise
    InvalidRecord instead of falling back to a default entry.
    """

    def __init__(self, entries: Optional[Iterable[CatalogEntry]] = None):
        items: List[CatalogEntry] = list(DEFAULT_ENTRIES if entries is None else entries)
        by_id: Dict[str, CatalogEntry] = {}
        for e in items:
            if e.id in by_id:
                raise ValueError(f"duplicate module id in catalog: {e.id}")
            by_id[e.id] = e
        self._by_id = by_id
        self._order = [e.id for e in items]

    def __iter__(self) -> Iterator[CatalogEntry]:
        return (self._by_id[mid] for mid in self._order)

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, module_id: object) -> bool:
        return module_id in self._by_id

    def ids(self) -> List[str]:
        return list(self._order)

    def restricted_ids(self) -> List[str]:
        return [mid for mid in self._order if self._by_id[mid].restricted]

    def get(self, module_id: str) -> CatalogEntry:
        entry = self._by_id.get(str(module_id or ""))
        if entry is None:
            raise InvalidRecord("Module is not in the catalog.", module_id=str(module_id))
        return entry

    def is_restricted(self, module_id: str) -> bool:
        return self.get(module_id).restricted
