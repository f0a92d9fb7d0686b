"""画像ファイルから 3D 姿勢を推定し、骨格シーンとして表示するデモ。

C キーでカメラ表示（カメラ視点 / ピラミッド）を切り替える。
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

from lib_pose3d.compose import SkeletonSceneController
from lib_pose3d.config import RenderConfig, load_render_config
from lib_pose3d.detect import PoseEstimator3D
from lib_pose3d.session import DetectionSession

logger = logging.getLogger(__name__)


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "image_path",
        type=Path,
        help="入力画像ファイルのパス",
    )
    parser.add_argument(
        "--model",
        type=str,
        default="pose_landmarker_full.task",
        help="MediaPipe PoseLandmarker のモデルファイル (default: pose_landmarker_full.task)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="[render] テーブルを持つ TOML ファイル",
    )
    parser.add_argument(
        "--image-alpha",
        type=float,
        default=None,
        help="画像平面の不透明度",
    )
    parser.add_argument(
        "--show-camera",
        action="store_true",
        help="カメラ視点で表示を開始する",
    )
    parser.add_argument(
        "--snapshot",
        type=Path,
        default=None,
        help="ウィンドウを開かず、matplotlib で描画した画像をこのパスに保存する",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="デバッグログを有効化",
    )
    return parser


def _load_config(args: argparse.Namespace) -> RenderConfig:
    config = load_render_config(args.config) if args.config else RenderConfig()
    if args.image_alpha is not None:
        config = config.replace(input_image_alpha=args.image_alpha)
    return config


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = _load_config(args)

    session = DetectionSession(PoseEstimator3D(model_asset_path=args.model))
    try:
        if session.run(args.image_path) is None:
            logger.error("No pose detected in %s", args.image_path)

        if args.snapshot is not None:
            from lib_pose3d.util_plot import MatplotlibSnapshotSurface

            surface = MatplotlibSnapshotSurface(args.snapshot)
            controller = SkeletonSceneController(session, surface, config)
            controller.show_camera = args.show_camera
            controller.update_scene()
            return 0

        import pyglet
        from pyglet.window import key

        from lib_pose3d.util_3d import PygletSceneSurface

        viewer = PygletSceneSurface(subdivisions=config.image_plane_subdivisions)
        controller = SkeletonSceneController(session, viewer, config)
        controller.show_camera = args.show_camera
        viewer.key_handlers[key.C] = controller.toggle_camera_mode
        controller.update_scene()
        try:
            pyglet.app.run()
        finally:
            viewer.close()
    finally:
        session.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
