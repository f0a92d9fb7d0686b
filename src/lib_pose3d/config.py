"""Render constants for scene reconstruction."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Tuple

import tomli

from .data import JointName

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderConfig:
    """Externally configurable sizes and opacities.

    attributes:
            image_node_size: base (width, height) of the image plane in scene units.
            input_image_alpha: opacity of the image plane.
            camera_node_alpha: opacity of the camera indicator pyramid.
            camera_pyramid_size: (width, height, length) of the camera indicator.
            joint_marker_size: edge length of the cube drawn for each joint.
            bone_width: cross-section of a bone box.
            head_width: cross-section of the box that replaces the head bone.
            length_epsilon: shortest bone length ever drawn.
            scale_epsilon: smallest image-space distance accepted by the scale estimate.
            reference_joints: joints whose distance relates the skeleton to the image.
            image_plane_subdivisions: texture sampling grid used by render surfaces.
    """

    image_node_size: Tuple[float, float] = (1.8, 1.8)
    input_image_alpha: float = 0.85
    camera_node_alpha: float = 0.6
    camera_pyramid_size: Tuple[float, float, float] = (0.25, 0.25, 0.25)
    joint_marker_size: float = 0.05
    joint_marker_chamfer: float = 0.05
    bone_width: float = 0.05
    head_width: float = 0.2
    head_chamfer: float = 0.4
    length_epsilon: float = 1e-5
    scale_epsilon: float = 1e-6
    reference_joints: Tuple[JointName, JointName] = (
        JointName.CENTER_SHOULDER,
        JointName.SPINE,
    )
    image_plane_subdivisions: int = 96

    def __post_init__(self) -> None:
        if any(v <= 0 for v in self.image_node_size):
            raise ValueError("image_node_size must be positive")
        for name in ("input_image_alpha", "camera_node_alpha"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1]")
        if self.image_plane_subdivisions < 1:
            raise ValueError("image_plane_subdivisions must be at least 1")

    def replace(self, **changes: Any) -> "RenderConfig":
        return dataclasses.replace(self, **changes)


def _coerce(name: str, value: Any) -> Any:
    if name == "reference_joints":
        first, second = value
        return (JointName(first), JointName(second))
    if isinstance(value, list):
        return tuple(float(v) for v in value)
    return value


def config_from_mapping(values: Mapping[str, Any]) -> RenderConfig:
    known = {f.name for f in dataclasses.fields(RenderConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"Unknown render settings: {', '.join(unknown)}")
    return RenderConfig(**{name: _coerce(name, value) for name, value in values.items()})


def load_render_config(path: Path | str) -> RenderConfig:
    """Read the ``[render]`` table of a TOML file into a :class:`RenderConfig`.

    Missing keys keep their defaults; a file without the table yields the defaults.
    """

    path = Path(path)
    logger.info("Loading render config from: %s", path)
    with open(path, "rb") as f:
        document = tomli.load(f)
    return config_from_mapping(document.get("render", {}))


__all__ = ["RenderConfig", "config_from_mapping", "load_render_config"]
