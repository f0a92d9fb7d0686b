"""Runs detection on a photo and holds the latest observation."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Optional, Protocol, Tuple

import numpy as np

from .data import Observation
from .errors import DetectionError, DetectionFailure
from .image import is_valid_image, load_oriented_image

logger = logging.getLogger(__name__)


class PoseDetector(Protocol):
    def detect(self, image_rgb: np.ndarray) -> Observation:
        """Return the observation for an RGB image or raise :class:`DetectionError`."""
        ...


class DetectionSession:
    """Observation holder in front of a :class:`PoseDetector`.

    A failed run leaves the previous observation in place. When runs overlap,
    only the most recently started one may publish its result.
    """

    def __init__(self, detector: PoseDetector, *, max_workers: int = 1) -> None:
        self._detector = detector
        self._lock = threading.Lock()
        self._generation = 0
        self._executor: Optional[ThreadPoolExecutor] = None
        self._max_workers = max_workers
        self.observation: Optional[Observation] = None
        self.file_path: Optional[Path] = None
        self.last_error: Optional[DetectionError] = None

    def _detect(self, path: Path) -> Observation:
        if not path.is_file():
            raise DetectionError(
                DetectionFailure.FILE_MISSING, f"File does not exist at path: {path}"
            )
        image = load_oriented_image(path)
        if not is_valid_image(image):
            raise DetectionError(
                DetectionFailure.INVALID_IMAGE,
                f"Invalid image or image has zero dimensions: {path}",
            )
        try:
            return self._detector.detect(image)
        except DetectionError:
            raise
        except Exception as exc:
            raise DetectionError(
                DetectionFailure.ENGINE_ERROR, f"Unable to perform the request: {exc}"
            ) from exc

    def _run(self, path: Path, generation: int) -> Optional[Observation]:
        try:
            observation = self._detect(path)
        except DetectionError as exc:
            logger.warning("Detection failed (%s): %s", exc.reason.value, exc)
            with self._lock:
                if generation == self._generation:
                    self.last_error = exc
            return None

        with self._lock:
            if generation != self._generation:
                logger.info("Discarding stale detection for %s", path)
                return None
            self.observation = observation
            self.file_path = path
            self.last_error = None
        logger.info(
            "Detected %d joints in %s", len(observation.available_joint_names), path
        )
        return observation

    def snapshot(self) -> Tuple[Optional[Observation], Optional[Path]]:
        """The latest observation together with the photo it was detected in."""

        with self._lock:
            return self.observation, self.file_path

    def _next_generation(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def run(self, path: Path | str) -> Optional[Observation]:
        """Detect synchronously. Returns the observation, or ``None`` on failure."""

        return self._run(Path(path), self._next_generation())

    def submit(self, path: Path | str) -> "Future[Optional[Observation]]":
        """Detect on a worker thread; newer submissions supersede older ones."""

        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers, thread_name_prefix="pose3d-detect"
            )
        generation = self._next_generation()
        return self._executor.submit(self._run, Path(path), generation)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        close = getattr(self._detector, "close", None)
        if close is not None:
            close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


__all__ = ["PoseDetector", "DetectionSession"]
