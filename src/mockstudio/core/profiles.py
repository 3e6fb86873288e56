"""Output profiles: user-facing ratio tags mapped onto the remote API's grid.

The generation service only renders a handful of native aspect ratios.  Each
user-facing ratio tag therefore resolves to three things:

- the nearest native ratio the service supports,
- the size a background template is cover-fitted to before upload,
- the exact size of the final image returned to the user.

The pre-process size is never relatively wider than the final size, so a
centre crop (never padding) takes the rendered image to its final size.
"""

from __future__ import annotations

from dataclasses import dataclass

from mockstudio.core.errors import UnsupportedRatioError


@dataclass(frozen=True)
class OutputProfile:
    """Dimensions and native ratio for one ratio tag."""

    tag: str
    label: str
    api_ratio: str
    input_size: tuple[int, int]
    final_size: tuple[int, int]

    @property
    def input_width(self) -> int:
        return self.input_size[0]

    @property
    def input_height(self) -> int:
        return self.input_size[1]

    @property
    def final_width(self) -> int:
        return self.final_size[0]

    @property
    def final_height(self) -> int:
        return self.final_size[1]

    def to_dict(self) -> dict:
        return {
            "tag": self.tag,
            "label": self.label,
            "api_ratio": self.api_ratio,
            "input_width": self.input_width,
            "input_height": self.input_height,
            "final_width": self.final_width,
            "final_height": self.final_height,
        }


# Display order: square, vertical post, story/reel.
_PROFILES: dict[str, OutputProfile] = {
    "1:1": OutputProfile(
        tag="1:1",
        label="Square",
        api_ratio="1:1",
        input_size=(1080, 1080),
        final_size=(1080, 1080),
    ),
    "4:5": OutputProfile(
        tag="4:5",
        label="Vertical post",
        api_ratio="3:4",
        input_size=(1080, 1440),
        final_size=(1080, 1350),
    ),
    "9:16": OutputProfile(
        tag="9:16",
        label="Story / Reel",
        api_ratio="9:16",
        input_size=(1080, 1920),
        final_size=(1080, 1920),
    ),
}

DEFAULT_RATIO = "4:5"


def resolve_profile(tag: str) -> OutputProfile:
    """Return the output profile for a ratio tag.

    Raises:
        UnsupportedRatioError: If the tag is not one of ``1:1``, ``4:5``
            or ``9:16``.
    """
    profile = _PROFILES.get(tag.strip())
    if profile is None:
        raise UnsupportedRatioError(tag, list(_PROFILES))
    return profile


def list_profiles() -> list[OutputProfile]:
    return list(_PROFILES.values())
