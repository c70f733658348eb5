"""Configuration surface of the locally weighted distance function."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from localdist.preprocessing import (
    DEFAULT_PREPROCESSOR,
    Preprocessor,
    PreprocessorChoice,
    make_preprocessor,
    parse_preprocessor_choice,
)

DEFAULT_DISTANCE_CONFIG: dict[str, Any] = {
    "preprocessor": DEFAULT_PREPROCESSOR.value,
    "omit_recompute": False,
}


@dataclass(frozen=True)
class DistanceConfig:
    """Which preprocessor to use, and whether to omit recomputation.

    Parameters
    ----------
    preprocessor:
        The preprocessor estimating the weight matrices.  Accepts a
        :class:`~localdist.preprocessing.PreprocessorChoice` or its
        string value.
    omit_recompute:
        If ``True``, matrices already in the store are reused on bind and
        kept unchanged across dataset mutations.
    """

    preprocessor: PreprocessorChoice = DEFAULT_PREPROCESSOR
    omit_recompute: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "preprocessor", parse_preprocessor_choice(self.preprocessor))
        if not isinstance(self.omit_recompute, bool):
            raise TypeError(
                f"omit_recompute must be a bool, got: {type(self.omit_recompute).__name__}"
            )

    @classmethod
    def from_mapping(cls, overrides: Optional[Mapping[str, Any]] = None) -> "DistanceConfig":
        """Build a config from *overrides* merged over the defaults.

        Raises
        ------
        ValueError
            On unknown keys or an unknown preprocessor name.
        TypeError
            If ``omit_recompute`` is not a bool.
        """
        unknown = set(overrides or {}) - set(DEFAULT_DISTANCE_CONFIG)
        if unknown:
            raise ValueError(
                f"Unknown configuration key(s): {sorted(unknown)}. "
                f"Available: {sorted(DEFAULT_DISTANCE_CONFIG)}"
            )
        resolved = {**DEFAULT_DISTANCE_CONFIG, **(overrides or {})}
        return cls(**resolved)

    def as_dict(self) -> dict[str, Any]:
        return {
            "preprocessor": self.preprocessor.value,
            "omit_recompute": self.omit_recompute,
        }

    def resolve_preprocessor(self, **params: Any) -> Preprocessor:
        """Instantiate the configured preprocessor."""
        return make_preprocessor(self.preprocessor, **params)
