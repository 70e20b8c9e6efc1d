from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


class OptionKind(Enum):
    FLAG = "flag"
    INTEGER = "integer"
    PATH = "path"
    TEXT = "text"


@dataclass
class PipelineOptions:
    """Every option of a pipeline run, initialized to its default."""
    # Stages
    process_segmentation: bool = False
    process_normalization: bool = False
    process_encoding: bool = False
    process_matching: bool = False
    use_mask: bool = True

    # Inputs
    filename_image_list: str = ""
    input_dir_original_images: str = ""
    input_dir_parameters: str = ""
    input_dir_masks: str = ""
    input_dir_normalized_images: str = ""
    input_dir_normalized_masks: str = ""
    input_dir_iris_codes: str = ""

    # Outputs
    output_dir_segmented_images: str = ""
    output_dir_parameters: str = ""
    output_dir_masks: str = ""
    output_dir_normalized_images: str = ""
    output_dir_normalized_masks: str = ""
    output_dir_iris_codes: str = ""
    output_file_matching_scores: str = ""

    # Parameters
    min_pupil_diameter: int = 21
    max_pupil_diameter: int = 91
    min_iris_diameter: int = 99
    max_iris_diameter: int = 399
    width_of_normalized_iris: int = 512
    height_of_normalized_iris: int = 64
    filename_gabor_filters: str = "./filters.txt"
    filename_application_points: str = "./points.txt"
    segmentation_method: str = "classic"

    # Suffixes appended to the image name for each artifact
    suffix_segmented_images: str = "_segm.bmp"
    suffix_parameters: str = "_para.txt"
    suffix_masks: str = "_mask.bmp"
    suffix_normalized_images: str = "_imno.bmp"
    suffix_normalized_masks: str = "_mano.bmp"
    suffix_iris_codes: str = "_code.bmp"


@dataclass(frozen=True)
class ConfigOption:
    key: str
    kind: OptionKind
    field: str

    @property
    def is_relative_path(self) -> bool:
        """Load/Save paths are resolved against the configuration directory."""
        return self.kind is OptionKind.PATH and self.key.startswith(("Load", "Save"))


_OPTION_TABLE: Tuple[ConfigOption, ...] = (
    ConfigOption("Process segmentation", OptionKind.FLAG, "process_segmentation"),
    ConfigOption("Process normalization", OptionKind.FLAG, "process_normalization"),
    ConfigOption("Process encoding", OptionKind.FLAG, "process_encoding"),
    ConfigOption("Process matching", OptionKind.FLAG, "process_matching"),
    ConfigOption("Use segmentation mask", OptionKind.FLAG, "use_mask"),
    ConfigOption("Use the mask provided by osiris", OptionKind.FLAG, "use_mask"),
    ConfigOption("Load List of images", OptionKind.PATH, "filename_image_list"),
    ConfigOption("Load original images", OptionKind.PATH, "input_dir_original_images"),
    ConfigOption("Load parameters", OptionKind.PATH, "input_dir_parameters"),
    ConfigOption("Load masks", OptionKind.PATH, "input_dir_masks"),
    ConfigOption("Load normalized images", OptionKind.PATH, "input_dir_normalized_images"),
    ConfigOption("Load normalized masks", OptionKind.PATH, "input_dir_normalized_masks"),
    ConfigOption("Load iris codes", OptionKind.PATH, "input_dir_iris_codes"),
    ConfigOption("Save segmented images", OptionKind.PATH, "output_dir_segmented_images"),
    ConfigOption("Save contours parameters", OptionKind.PATH, "output_dir_parameters"),
    ConfigOption("Save masks of iris", OptionKind.PATH, "output_dir_masks"),
    ConfigOption("Save normalized images", OptionKind.PATH, "output_dir_normalized_images"),
    ConfigOption("Save normalized masks", OptionKind.PATH, "output_dir_normalized_masks"),
    ConfigOption("Save iris codes", OptionKind.PATH, "output_dir_iris_codes"),
    ConfigOption("Save matching scores", OptionKind.PATH, "output_file_matching_scores"),
    ConfigOption("Minimum diameter for pupil", OptionKind.INTEGER, "min_pupil_diameter"),
    ConfigOption("Maximum diameter for pupil", OptionKind.INTEGER, "max_pupil_diameter"),
    ConfigOption("Minimum diameter for iris", OptionKind.INTEGER, "min_iris_diameter"),
    ConfigOption("Maximum diameter for iris", OptionKind.INTEGER, "max_iris_diameter"),
    ConfigOption("Width of normalized image", OptionKind.INTEGER, "width_of_normalized_iris"),
    ConfigOption("Height of normalized image", OptionKind.INTEGER, "height_of_normalized_iris"),
    ConfigOption("Load Gabor filters", OptionKind.PATH, "filename_gabor_filters"),
    ConfigOption("Load Application points", OptionKind.PATH, "filename_application_points"),
    ConfigOption("Segmentation method", OptionKind.TEXT, "segmentation_method"),
    ConfigOption("Suffix for segmented images", OptionKind.PATH, "suffix_segmented_images"),
    ConfigOption("Suffix for parameters", OptionKind.PATH, "suffix_parameters"),
    ConfigOption("Suffix for masks of iris", OptionKind.PATH, "suffix_masks"),
    ConfigOption("Suffix for normalized images", OptionKind.PATH, "suffix_normalized_images"),
    ConfigOption("Suffix for normalized masks", OptionKind.PATH, "suffix_normalized_masks"),
    ConfigOption("Suffix for iris codes", OptionKind.PATH, "suffix_iris_codes"),
)

OPTIONS: Dict[str, ConfigOption] = {option.key: option for option in _OPTION_TABLE}

_TRUE_TOKENS = {"1", "true", "yes", "on"}
_FALSE_TOKENS = {"0", "false", "no", "off"}


def parse_flag(value: str) -> bool:
    token = value.strip().lower()
    if token in _TRUE_TOKENS:
        return True
    if token in _FALSE_TOKENS:
        return False
    raise ValueError(f"'{value}' is not a boolean")


def convert_slashes(value: str) -> str:
    return value.replace("\\", "/")
