"""
Datasets of feature vectors and their mutation channel.

A dataset owns the vectors; everything else refers to them by integer
id.  Mutations (insert, delete, bulk update) are announced on an
explicit channel: a consumer calls :meth:`VectorDataset.subscribe` and
receives a :class:`Subscription` handle whose release detaches it.
Nothing subscribes implicitly.

:class:`InMemoryDataset` is the reference implementation used by the
tests and examples; production hosts implement :class:`VectorDataset`
over their own storage.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

from localdist.errors import DimensionalityMismatchError, UnknownObjectError
from localdist.vector import FeatureVector

# ── Mutation events ─────────────────────────────────────────────────


class MutationKind(str, Enum):
    INSERT = "insert"
    DELETE = "delete"
    UPDATE = "update"


@dataclass(frozen=True)
class MutationEvent:
    """A change applied to a dataset, carrying the affected ids."""

    kind: MutationKind
    object_ids: tuple[int, ...]


MutationListener = Callable[[MutationEvent], None]


class Subscription:
    """Handle for an attached listener.

    :meth:`release` detaches it and is idempotent.  The handle is also a
    context manager, releasing on exit.
    """

    def __init__(self, release: Callable[[], None]) -> None:
        self._release: Optional[Callable[[], None]] = release

    @property
    def active(self) -> bool:
        return self._release is not None

    def release(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


# ── Protocol ────────────────────────────────────────────────────────


@runtime_checkable
class VectorDataset(Protocol):
    """What the distance function needs from a dataset."""

    @property
    def dimensionality(self) -> Optional[int]:
        """Dimensionality of every stored vector (``None`` while empty)."""
        ...

    def get(self, object_id: int) -> FeatureVector:
        """Return the vector stored under *object_id*.

        Raises ``UnknownObjectError`` for ids not in the dataset.
        """
        ...

    def ids(self) -> List[int]:
        """Return the ids of all live objects."""
        ...

    def subscribe(self, listener: MutationListener) -> Subscription:
        """Attach *listener* to the mutation channel."""
        ...

    def __len__(self) -> int:
        ...


# ── Reference implementation ────────────────────────────────────────


class InMemoryDataset:
    """Dict-backed dataset with sequential integer ids.

    Every mutating method applies its change first and then notifies the
    listeners synchronously.  A listener that raises (for example a
    failing preprocessor) propagates to the caller of the mutating
    method; the mutation itself stays applied.
    """

    def __init__(
        self,
        vectors: Iterable[Sequence[float]] = (),
        *,
        dimensionality: Optional[int] = None,
    ) -> None:
        self._dimensionality = dimensionality
        self._objects: Dict[int, FeatureVector] = {}
        self._listeners: List[MutationListener] = []
        self._next_id = 0
        for values in vectors:
            self._add(values)

    @property
    def dimensionality(self) -> Optional[int]:
        return self._dimensionality

    # -- reads --

    def get(self, object_id: int) -> FeatureVector:
        try:
            return self._objects[object_id]
        except KeyError:
            raise UnknownObjectError(f"No object with id {object_id!r}") from None

    def ids(self) -> List[int]:
        return list(self._objects)

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self) -> Iterator[FeatureVector]:
        return iter(list(self._objects.values()))

    def __contains__(self, object_id: object) -> bool:
        return object_id in self._objects

    # -- mutation channel --

    def subscribe(self, listener: MutationListener) -> Subscription:
        if not callable(listener):
            raise TypeError(f"Listener must be callable, got: {type(listener).__name__}")
        self._listeners.append(listener)

        def _release() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Subscription(_release)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _emit(self, kind: MutationKind, object_ids: Sequence[int]) -> None:
        if not object_ids:
            return
        event = MutationEvent(kind, tuple(object_ids))
        for listener in list(self._listeners):
            listener(event)

    # -- writes --

    def _check(self, vector: FeatureVector) -> None:
        if self._dimensionality is None:
            self._dimensionality = vector.dimensionality
        elif vector.dimensionality != self._dimensionality:
            raise DimensionalityMismatchError(
                f"Vector dimension mismatch: dataset has {self._dimensionality}, "
                f"got {vector.dimensionality}"
            )

    def _add(self, values: Sequence[float]) -> int:
        vector = FeatureVector(self._next_id, tuple(values))
        self._check(vector)
        self._objects[vector.id] = vector
        self._next_id += 1
        return vector.id

    def insert(self, values: Sequence[float]) -> int:
        """Insert one vector and return its id."""
        return self.insert_many([values])[0]

    def insert_many(self, vectors: Iterable[Sequence[float]]) -> List[int]:
        """Insert several vectors, announcing them in a single event."""
        staged = [FeatureVector(-1, tuple(v)) for v in vectors]
        expected = self._dimensionality
        if expected is None and staged:
            expected = staged[0].dimensionality
        for vector in staged:
            if vector.dimensionality != expected:
                raise DimensionalityMismatchError(
                    f"Vector dimension mismatch: expected {expected}, "
                    f"got {vector.dimensionality}"
                )
        new_ids = [self._add(vector.values) for vector in staged]
        self._emit(MutationKind.INSERT, new_ids)
        return new_ids

    def delete(self, object_id: int) -> FeatureVector:
        """Delete one object and return its vector."""
        return self.delete_many([object_id])[0]

    def delete_many(self, object_ids: Iterable[int]) -> List[FeatureVector]:
        ids = list(object_ids)
        removed = [self.get(i) for i in ids]
        for i in ids:
            self._objects.pop(i, None)
        self._emit(MutationKind.DELETE, ids)
        return removed

    def update(self, object_id: int, values: Sequence[float]) -> None:
        """Replace the vector of *object_id*."""
        self.update_many({object_id: values})

    def update_many(self, updates: Mapping[int, Sequence[float]]) -> None:
        """Bulk update: replace several vectors, then emit one event."""
        replaced = []
        for object_id, values in updates.items():
            vector = self.get(object_id).with_values(values)
            self._check(vector)
            replaced.append(vector)
        for vector in replaced:
            self._objects[vector.id] = vector
        self._emit(MutationKind.UPDATE, [v.id for v in replaced])
