"""Admission policy for candidate objects and fields."""

from dataclasses import dataclass, field

from sf_catalog.config import (
    CUSTOM_FIELD_MARKERS,
    CUSTOM_OBJECT_MARKER,
    DEFAULT_EXCLUDED_SUFFIXES,
)


@dataclass(frozen=True)
class ExclusionPolicy:
    """Decides whether an object name is admitted into the catalog.

    Suffix matching is case-sensitive and exact (``AccountShare`` is
    rejected, ``Accountshare`` is not). Changing that changes which records
    a purge removes.
    """

    exclude_custom: bool = True
    exclude_suffixes: frozenset[str] = field(default_factory=lambda: DEFAULT_EXCLUDED_SUFFIXES)

    def should_admit(self, object_name: str) -> bool:
        if self.exclude_custom and CUSTOM_OBJECT_MARKER in object_name:
            return False
        return not any(object_name.endswith(suffix) for suffix in self.exclude_suffixes)

    def should_remove(self, object_name: str) -> bool:
        return not self.should_admit(object_name)

    def should_admit_field(self, field_name: str) -> bool:
        if not self.exclude_custom:
            return True
        return not any(marker in field_name for marker in CUSTOM_FIELD_MARKERS)

    @classmethod
    def from_options(
        cls,
        exclude_custom: bool = True,
        exclude_suffixes: set[str] | frozenset[str] | None = None,
    ) -> 'ExclusionPolicy':
        suffixes = DEFAULT_EXCLUDED_SUFFIXES if exclude_suffixes is None else frozenset(exclude_suffixes)
        return cls(exclude_custom=exclude_custom, exclude_suffixes=suffixes)


def should_admit(object_name: str, config: ExclusionPolicy | None = None) -> bool:
    return (config or ExclusionPolicy()).should_admit(object_name)
