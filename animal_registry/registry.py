"""Animal Registry.

An arena of Animal records addressed by stable integer indices, plus an
index from every stored AnimalKey to the lowest arena index holding it.

Resolution semantics:
- A record matches the earliest-created animal that shares any candidate
  key with it. Ambiguous records (keys spread over several animals) are not
  reconciled; the earliest animal wins and the ambiguity is reported.
- Identifiers merge first-non-null-wins. A barcode is derived from the
  stored EID/QR ID on match when none is stored yet.
- Keys are never re-linked: an animal keeps every key it ever stored.
- Records with no recognised identifier resolve to nothing.
"""

from typing import Any, Dict, Iterator, List, Mapping, NamedTuple, Optional

from animal_registry.models import Animal, AnimalKey
from animal_registry.normalize import (
    RecordIdentifiers,
    candidate_keys,
    derive_barcode,
    primary_key,
    record_identifiers,
    stored_keys,
)


class Resolution(NamedTuple):
    """Outcome of resolving one record."""
    index: int
    created: bool = False
    match_count: int = 0

    @property
    def is_ambiguous(self) -> bool:
        return self.match_count > 1


class AnimalRegistry:
    """Arena of animals with a key index.

    Example:
        registry = AnimalRegistry()
        resolution = registry.resolve({"eid": "982000123456789", "w1": 31.5})
        animal = registry[resolution.index]
    """

    def __init__(self):
        self._animals: List[Animal] = []
        self._index: Dict[AnimalKey, int] = {}

    def __len__(self) -> int:
        return len(self._animals)

    def __iter__(self) -> Iterator[Animal]:
        return iter(self._animals)

    def __getitem__(self, index: int) -> Animal:
        return self._animals[index]

    @property
    def animals(self) -> List[Animal]:
        """Animals in creation order."""
        return list(self._animals)

    def copy(self) -> "AnimalRegistry":
        """Independent copy; mutating the copy leaves this registry untouched."""
        clone = AnimalRegistry()
        clone._animals = [animal.model_copy(deep=True) for animal in self._animals]
        clone._index = dict(self._index)
        return clone

    # =========================================================================
    # Lookup
    # =========================================================================

    def owner_of(self, key: AnimalKey) -> Optional[int]:
        """Arena index of the earliest animal holding `key`."""
        return self._index.get(key)

    def matches(self, keys: List[AnimalKey]) -> List[int]:
        """All arena indices hit by `keys`, earliest first."""
        return sorted({self._index[key] for key in keys if key in self._index})

    def find(self, record: Mapping[str, Any]) -> Optional[int]:
        """Arena index a record would resolve to, without creating or merging."""
        hits = self.matches(candidate_keys(record_identifiers(record)))
        return hits[0] if hits else None

    # =========================================================================
    # Resolution
    # =========================================================================

    def resolve(self, record: Mapping[str, Any]) -> Optional[Resolution]:
        """Find or create the animal for a record and merge its identifiers.

        Returns:
            Resolution, or None when the record carries no usable identifier
        """
        ids = record_identifiers(record)
        hits = self.matches(candidate_keys(ids))

        if hits:
            index = hits[0]
            self._merge_identifiers(index, ids)
            return Resolution(index=index, created=False, match_count=len(hits))

        label = primary_key(ids)
        if label is None:
            return None

        index = self._create(ids, label)
        return Resolution(index=index, created=True, match_count=0)

    def _create(self, ids: RecordIdentifiers, label: AnimalKey) -> int:
        index = len(self._animals)
        animal = Animal(
            index=index,
            id=str(label),
            eid=ids.eid,
            vid=ids.vid,
            qrid=ids.qrid,
            barcode=derive_barcode(ids.eid, ids.qrid) or ids.barcode,
            tattoo=ids.tattoo,
        )
        self._animals.append(animal)
        self._reindex(index)
        return index

    def _merge_identifiers(self, index: int, ids: RecordIdentifiers) -> None:
        animal = self._animals[index]

        if ids.eid and not animal.eid:
            animal.eid = ids.eid
        if ids.vid and not animal.vid:
            animal.vid = ids.vid
        if ids.qrid and not animal.qrid:
            animal.qrid = ids.qrid
        if ids.tattoo and not animal.tattoo:
            animal.tattoo = ids.tattoo

        if not animal.barcode:
            animal.barcode = derive_barcode(animal.eid, animal.qrid) or ids.barcode

        self._reindex(index)

    def _reindex(self, index: int) -> None:
        for key in stored_keys(self._animals[index]):
            owner = self._index.get(key)
            if owner is None or index < owner:
                self._index[key] = index
