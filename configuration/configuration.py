"""Pipeline configuration: option parsing and the shared read-only resources.

A configuration file is a list of ``key = value`` lines with ``#`` comments.
Recognized keys are listed in :mod:`configuration.schema`. Once the options
are parsed, the image list is loaded, and the filter bank and application
mask are loaded when the stage that needs them is enabled.
"""

import logging
import os
from typing import Iterator, List, Mapping, Optional

import numpy as np

from errors import ArtifactIOError, ConfigError, Severity
from .schema import OPTIONS, OptionKind, PipelineOptions, convert_slashes, parse_flag

logger = logging.getLogger(__name__)

# File read inside a configuration directory
DEFAULT_CONFIG_NAME = "process.ini"


def _read_text(path: str, what: str) -> str:
    try:
        with open(path, "r") as f:
            return f.read()
    except OSError as exc:
        raise ArtifactIOError(f"Cannot load the {what} in {path}: {exc.strerror}",
                              severity=Severity.FATAL) from exc


def _tokens(text: str, path: str, what: str) -> Iterator[str]:
    yield from text.split()
    raise ConfigError(f"Unexpected end of file while reading the {what} in {path}")


def _next_number(tokens: Iterator[str], cast, path: str, what: str):
    token = next(tokens)
    try:
        return cast(token)
    except ValueError as exc:
        raise ConfigError(f"Invalid value '{token}' in the {what} file {path}") from exc


class Configuration:
    def __init__(self):
        self.reset_to_defaults()

    def reset_to_defaults(self):
        """Restore every option to its default and drop loaded resources."""
        self.options = PipelineOptions()
        self.config_dir = ""
        self.image_list: List[str] = []
        self.filter_bank: List[np.ndarray] = []
        self.application_mask: Optional[np.ndarray] = None
        self.unknown_keys: List[str] = []

    def set_option(self, key: str, value: str) -> bool:
        """Convert value to the kind of the option and store it.
        Returns False if the key is not recognized."""
        option = OPTIONS.get(key)
        if option is None:
            return False

        try:
            if option.kind is OptionKind.FLAG:
                converted = parse_flag(value)
            elif option.kind is OptionKind.INTEGER:
                converted = int(value)
            elif option.kind is OptionKind.PATH:
                converted = convert_slashes(value)
                if option.is_relative_path:
                    converted = os.path.join(self.config_dir, converted)
            else:
                converted = value
        except ValueError as exc:
            raise ConfigError(f"Invalid value '{value}' for option '{key}'") from exc

        setattr(self.options, option.field, converted)
        return True

    def load(self, path: str, overrides: Optional[Mapping[str, str]] = None):
        """Parse a configuration file, then load the resources it refers to.

        Args:
            path: Configuration file, or a directory holding ``process.ini``.
            overrides: Extra ``{key: value}`` entries applied after the file.
        """
        if not path:
            raise ConfigError("Empty configuration path")
        if os.path.isdir(path):
            path = os.path.join(path, DEFAULT_CONFIG_NAME)

        try:
            with open(path, "r") as f:
                lines = f.read().splitlines()
        except OSError as exc:
            raise ConfigError(f"Cannot read configuration file {path}: {exc.strerror}") from exc

        self.config_dir = os.path.dirname(path)

        for line in lines:
            line = line.split("#", 1)[0]
            if "=" not in line:
                continue
            key, value = (part.strip() for part in line.split("=", 1))
            if not key or not value:
                continue
            if not self.set_option(key, value):
                logger.warning("Unknown option in configuration file: %s", line.strip())
                self.unknown_keys.append(key)

        for key, value in (overrides or {}).items():
            if not self.set_option(key, value):
                raise ConfigError(f"Unknown option '{key}'")

        logger.info("Configuration loaded from %s", path)

        self.load_image_list()

        if self.options.process_encoding and self.options.filename_gabor_filters:
            self.load_filter_bank()

        if self.options.process_matching and self.options.filename_application_points:
            self.load_application_mask()

    def load_image_list(self):
        path = self.options.filename_image_list
        self.image_list = _read_text(path, "list of images").split()
        logger.info("Loaded %d images from %s", len(self.image_list), path)

    def load_filter_bank(self):
        """Read filters as: count, then per filter rows, cols and rows*cols row-major values."""
        path = self.options.filename_gabor_filters
        what = "Gabor filters"
        tokens = _tokens(_read_text(path, what), path, what)

        filters = []
        n_filters = _next_number(tokens, int, path, what)
        for _ in range(n_filters):
            rows = _next_number(tokens, int, path, what)
            cols = _next_number(tokens, int, path, what)
            if rows <= 0 or cols <= 0:
                raise ConfigError(f"Invalid filter size {rows}x{cols} in {path}")
            values = [_next_number(tokens, float, path, what) for _ in range(rows * cols)]
            filters.append(np.array(values, dtype=np.float32).reshape(rows, cols))

        self.filter_bank = filters
        logger.info("Loaded %d filters from %s", len(filters), path)

    def load_application_mask(self):
        """Read points as: count, then count (row, col) pairs, into a mask of the normalized size."""
        path = self.options.filename_application_points
        what = "application points"
        tokens = _tokens(_read_text(path, what), path, what)

        height = self.options.height_of_normalized_iris
        width = self.options.width_of_normalized_iris
        mask = np.zeros((height, width), dtype=np.uint8)

        n_points = _next_number(tokens, int, path, what)
        for _ in range(n_points):
            row = _next_number(tokens, int, path, what)
            col = _next_number(tokens, int, path, what)
            if 0 <= row < height and 0 <= col < width:
                mask[row, col] = 255
            else:
                logger.warning("Point (%d,%d) exceeds size of normalized image %dx%d while loading application points",
                               row, col, height, width)

        self.application_mask = mask
        logger.info("Loaded %d application points from %s", np.count_nonzero(mask), path)

    def describe(self) -> str:
        """Human-readable summary of the active configuration."""
        o = self.options
        lines = ["=============", "Configuration", "=============", ""]

        stages = [name for name, enabled in (
            ("segmentation", o.process_segmentation),
            ("normalization", o.process_normalization),
            ("encoding", o.process_encoding),
            ("matching", o.process_matching),
        ) if enabled]
        process = "- Process : " + "".join(f"| {name} |" for name in stages)
        if not o.use_mask:
            process += " do not use segmentation masks"
        lines.append(process)
        lines.append(f"- List of images {o.filename_image_list} contains {len(self.image_list)} images")
        lines.append("")

        inputs = (
            ("Original images", o.input_dir_original_images),
            ("Parameters", o.input_dir_parameters),
            ("Masks", o.input_dir_masks),
            ("Normalized images", o.input_dir_normalized_images),
            ("Normalized masks", o.input_dir_normalized_masks),
            ("Iris codes", o.input_dir_iris_codes),
        )
        for name, directory in inputs:
            if directory:
                lines.append(f"- {name} will be loaded from : {directory}")
        lines.append("")

        outputs = (
            ("Segmented images", o.process_segmentation, o.output_dir_segmented_images, o.suffix_segmented_images),
            ("Parameters", o.process_segmentation, o.output_dir_parameters, o.suffix_parameters),
            ("Masks", o.process_segmentation, o.output_dir_masks, o.suffix_masks),
            ("Normalized images", o.process_normalization, o.output_dir_normalized_images, o.suffix_normalized_images),
            ("Normalized masks", o.process_normalization, o.output_dir_normalized_masks, o.suffix_normalized_masks),
            ("Iris codes", o.process_encoding, o.output_dir_iris_codes, o.suffix_iris_codes),
        )
        for name, enabled, directory, suffix in outputs:
            if enabled and directory:
                lines.append(f"- {name} will be saved as : {os.path.join(directory, 'XXX' + suffix)}")
        if o.process_matching and o.output_file_matching_scores:
            lines.append(f"- Matching scores will be saved in : {o.output_file_matching_scores}")
        lines.append("")

        if o.process_segmentation:
            lines.append(f"- Segmentation method : {o.segmentation_method}")
            lines.append(f"- Pupil diameter ranges from {o.min_pupil_diameter} to {o.max_pupil_diameter}")
            lines.append(f"- Iris diameter ranges from {o.min_iris_diameter} to {o.max_iris_diameter}")
        if o.process_normalization or o.process_encoding or o.process_matching:
            lines.append(f"- Size of normalized iris is {o.width_of_normalized_iris} x {o.height_of_normalized_iris}")

        if o.process_encoding and self.filter_bank:
            shapes = " ".join(f"{f.shape[0]}x{f.shape[1]}" for f in self.filter_bank)
            lines.append(f"- {len(self.filter_bank)} Gabor filters : {shapes}")
        if o.process_matching and self.application_mask is not None:
            lines.append(f"- {np.count_nonzero(self.application_mask)} application points")

        return "\n".join(lines)
