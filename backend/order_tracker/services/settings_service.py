from __future__ import annotations

from typing import Iterable, Iterator

from flask import current_app, has_app_context

from ..extensions import db
from ..models import WorkspaceVocabulary
from .concurrency import run_with_retry


KIND_STATUS = "status"
KIND_CATEGORY = "category"
ALL_KINDS = {KIND_STATUS, KIND_CATEGORY}

DEFAULT_STATUSES = ["Pending", "Processing", "Shipped", "Settled", "Cancelled", "Returned"]
DEFAULT_CATEGORIES = ["Electronics", "Furniture", "Home & Kitchen", "Fashion", "Sports", "Other"]

MAX_LABEL_LENGTH = 64


class SettingsError(ValueError):
    pass


class SettingsValidationError(SettingsError):
    pass


class SettingsNotFoundError(SettingsError):
    pass


def _clean(label) -> str:
    text = str(label or "").strip()
    if not text:
        raise SettingsValidationError("Label cannot be blank")
    if len(text) > MAX_LABEL_LENGTH:
        raise SettingsValidationError(f"Label exceeds max length {MAX_LABEL_LENGTH}")
    return text


class OrderedLabelSet:
    """
    Insertion-ordered set of display labels.

    Membership is case-insensitive ("returned" matches "Returned"); the stored
    spelling is the one first added.
    """

    def __init__(self, labels: Iterable[str] = ()):
        self._labels: list[str] = []
        for label in labels:
            text = str(label or "").strip()
            if text and text not in self:
                self._labels.append(text)

    def __contains__(self, label) -> bool:
        return self.index_of(label) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self._labels)

    def __len__(self) -> int:
        return len(self._labels)

    def __eq__(self, other) -> bool:
        if isinstance(other, OrderedLabelSet):
            return self._labels == other._labels
        return NotImplemented

    def __repr__(self) -> str:
        return f"OrderedLabelSet({self._labels!r})"

    def index_of(self, label) -> int | None:
        wanted = str(label or "").strip().lower()
        for i, existing in enumerate(self._labels):
            if existing.lower() == wanted:
                return i
        return None

    def _require(self, label) -> int:
        index = self.index_of(label)
        if index is None:
            raise SettingsNotFoundError(f'Label "{label}" not found')
        return index

    def add(self, label) -> str:
        text = _clean(label)
        if text in self:
            raise SettingsValidationError(f'Label "{text}" already exists')
        self._labels.append(text)
        return text

    def remove(self, label) -> str:
        return self._labels.pop(self._require(label))

    def rename(self, old, new) -> str:
        index = self._require(old)
        text = _clean(new)
        clash = self.index_of(text)
        if clash is not None and clash != index:
            raise SettingsValidationError(f'Label "{text}" already exists')
        self._labels[index] = text
        return text

    def move(self, label, position: int) -> None:
        index = self._require(label)
        if not isinstance(position, int) or isinstance(position, bool):
            raise SettingsValidationError("position must be an integer")
        position = max(0, min(position, len(self._labels) - 1))
        self._labels.insert(position, self._labels.pop(index))

    def to_list(self) -> list[str]:
        return list(self._labels)


def _require_kind(kind: str) -> str:
    if kind not in ALL_KINDS:
        raise SettingsValidationError(f"kind must be one of: {', '.join(sorted(ALL_KINDS))}")
    return kind


def default_labels(kind: str) -> list[str]:
    _require_kind(kind)
    return list(DEFAULT_STATUSES if kind == KIND_STATUS else DEFAULT_CATEGORIES)


def protected_labels(kind: str) -> list[str]:
    """Status labels with workflow meaning; they cannot be removed or renamed."""
    if kind != KIND_STATUS:
        return []
    if has_app_context():
        return [current_app.config.get("SETTLED_STATUS", "Settled"), current_app.config.get("RETURNED_STATUS", "Returned")]
    return ["Settled", "Returned"]


def _load_row(user_id: str, kind: str) -> WorkspaceVocabulary | None:
    return db.session.query(WorkspaceVocabulary).filter_by(user_id=user_id, kind=kind).first()


def get_vocabulary(user_id: str, kind: str) -> OrderedLabelSet:
    _require_kind(kind)
    row = run_with_retry(lambda: _load_row(user_id, kind))
    if row is None:
        labels = OrderedLabelSet(default_labels(kind))
    else:
        labels = OrderedLabelSet(row.labels or [])

    # A protected status always exists, even if an older row predates it
    for label in protected_labels(kind):
        if label not in labels:
            labels.add(label)
    return labels


def _save(user_id: str, kind: str, labels: OrderedLabelSet) -> OrderedLabelSet:
    values = labels.to_list()

    def unit():
        row = _load_row(user_id, kind)
        if row is None:
            row = WorkspaceVocabulary(user_id=user_id, kind=kind)
            db.session.add(row)
        # Reassign so the JSON column is flagged dirty
        row.labels = list(values)
        db.session.commit()
        return row

    run_with_retry(unit)
    return labels


def add_label(user_id: str, kind: str, label: str) -> OrderedLabelSet:
    labels = get_vocabulary(user_id, kind)
    labels.add(label)
    return _save(user_id, kind, labels)


def remove_label(user_id: str, kind: str, label: str) -> OrderedLabelSet:
    """Existing orders keep the label as free text."""
    labels = get_vocabulary(user_id, kind)
    if label in OrderedLabelSet(protected_labels(kind)):
        raise SettingsValidationError(f'"{label}" is required by the order workflow and cannot be removed')
    labels.remove(label)
    return _save(user_id, kind, labels)


def rename_label(user_id: str, kind: str, old: str, new: str) -> OrderedLabelSet:
    """Renames the vocabulary entry only; orders are not rewritten."""
    labels = get_vocabulary(user_id, kind)
    if old in OrderedLabelSet(protected_labels(kind)):
        raise SettingsValidationError(f'"{old}" is required by the order workflow and cannot be renamed')
    labels.rename(old, new)
    return _save(user_id, kind, labels)


def reorder_labels(user_id: str, kind: str, ordered: Iterable[str]) -> OrderedLabelSet:
    """Replace the display order; ordered must hold exactly the current labels."""
    labels = get_vocabulary(user_id, kind)
    if isinstance(ordered, str):
        raise SettingsValidationError("labels must be a list")
    ordered = list(ordered)
    proposed = OrderedLabelSet(ordered)

    current = {label.lower() for label in labels}
    if len(proposed) != len(ordered) or {label.lower() for label in proposed} != current:
        raise SettingsValidationError("labels must contain each existing label exactly once")

    # Keep the stored spelling of each label
    reordered = OrderedLabelSet(labels.to_list()[labels.index_of(label)] for label in proposed)
    return _save(user_id, kind, reordered)


def move_label(user_id: str, kind: str, label: str, position: int) -> OrderedLabelSet:
    labels = get_vocabulary(user_id, kind)
    labels.move(label, position)
    return _save(user_id, kind, labels)
