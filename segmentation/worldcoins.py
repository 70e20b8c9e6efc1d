import logging
import numpy as np
import cv2
from typing import Tuple

from errors import ComputationError
from .circle import BoundaryCircle
from .interface import IrisSegmentator, SegmentationResult, build_iris_mask

logger = logging.getLogger(__name__)

# Resolution expected by the ONNX model
MODEL_RESOLUTION = (640, 480)

# Channel order of the model predictions
EYEBALL, IRIS, PUPIL, EYELASHES = range(4)


class WorldCoinSegmentator(IrisSegmentator):
    """Semantic segmentation with the open-iris ONNX model, reduced to fitted circles.

    Requires the optional ``open-iris`` dependency.
    """
    def __init__(self, threshold: float = 0.5):
        import iris
        from iris.nodes.segmentation.onnx_multilabel_segmentation import ONNXMultilabelSegmentation

        self._iris = iris
        self.threshold = threshold
        self.segmentation_model = ONNXMultilabelSegmentation.create_from_hugging_face(
            model_name="iris_semseg_upp_scse_mobilenetv2.onnx",
            input_resolution=MODEL_RESOLUTION,
            input_num_channels=3
        )

    def segment(self, image: np.ndarray, min_iris_diameter: int, min_pupil_diameter: int,
                max_iris_diameter: int, max_pupil_diameter: int) -> SegmentationResult:
        height, width = image.shape[:2]
        resized = cv2.resize(image, MODEL_RESOLUTION)

        ir_image = self._iris.IRImage(img_data=resized, eye_side="left")
        segmentation_output = self.segmentation_model.run(ir_image)

        pupil, iris = self.circles_from_predictions(segmentation_output.predictions, self.threshold)
        scale_x = width / MODEL_RESOLUTION[0]
        scale_y = height / MODEL_RESOLUTION[1]
        pupil = rescale_circle(pupil, scale_x, scale_y)
        iris = rescale_circle(iris, scale_x, scale_y)

        logger.debug("Model boundaries: pupil %s, iris %s", pupil, iris)
        check_diameter("pupil", pupil, min_pupil_diameter, max_pupil_diameter)
        check_diameter("iris", iris, min_iris_diameter, max_iris_diameter)

        mask = build_iris_mask(image.shape, pupil, iris, image)
        eyelashes = segmentation_output.predictions[:, :, EYELASHES] >= self.threshold
        eyelashes = cv2.resize(eyelashes.astype(np.uint8), (width, height), interpolation=cv2.INTER_NEAREST)
        mask[eyelashes > 0] = 0

        return SegmentationResult(pupil=pupil, iris=iris, mask=mask)

    @staticmethod
    def circles_from_predictions(predictions: np.ndarray, threshold: float = 0.5) -> Tuple[BoundaryCircle, BoundaryCircle]:
        """Fit pupil and iris circles to the outer contours of the thresholded probability maps."""
        pupil_mask = predictions[:, :, PUPIL] >= threshold
        # Iris with the pupil hole filled in
        iris_mask = (predictions[:, :, IRIS] >= threshold) | pupil_mask

        pupil = BoundaryCircle().fit(largest_contour_points(pupil_mask, "pupil"))
        iris = BoundaryCircle().fit(largest_contour_points(iris_mask, "iris"))
        return pupil, iris


def largest_contour_points(binary_mask: np.ndarray, name: str) -> np.ndarray:
    contours, _ = cv2.findContours(binary_mask.astype(np.uint8), cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_NONE)
    if not contours:
        raise ComputationError(f"No {name} region found in segmentation map")
    largest = max(contours, key=cv2.contourArea)
    return largest.reshape(-1, 2)


def rescale_circle(circle: BoundaryCircle, scale_x: float, scale_y: float) -> BoundaryCircle:
    return BoundaryCircle(
        (round(circle.center[0] * scale_x), round(circle.center[1] * scale_y)),
        round(circle.radius * (scale_x + scale_y) / 2),
    )


def check_diameter(name: str, circle: BoundaryCircle, min_diameter: int, max_diameter: int):
    diameter = 2 * circle.radius
    if not min_diameter <= diameter <= max_diameter:
        raise ComputationError(
            f"{name.capitalize()} diameter {diameter} outside [{min_diameter}, {max_diameter}]")
