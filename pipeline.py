"""Batch driver for the segmentation -> normalization -> encoding -> matching pipeline.

For every image of the list, each artifact is either computed (its stage is
enabled), loaded (an input directory is configured) or left absent. When
matching is enabled, consecutive images are paired and one score line is
written per pair. A failure on one image is logged and the batch continues.
"""

import logging
import os
from contextlib import nullcontext
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

import cv2

from configuration import Configuration
from errors import ArtifactIOError, ConfigError, PipelineError, Severity
from eye_record import EyeRecord
from segmentation import create_segmentator

logger = logging.getLogger(__name__)


class Resolution(Enum):
    COMPUTE = "compute"
    LOAD = "load"
    ABSENT = "absent"


@dataclass(frozen=True)
class ArtifactRule:
    """Where an artifact comes from and where it goes, as option field names."""
    description: str
    stage_flag: str
    input_dir: str
    output_dir: str
    suffix: str
    load_method: str
    save_method: str


# Ordered as they are loaded and saved
ARTIFACTS: Dict[str, ArtifactRule] = {
    "parameters": ArtifactRule("parameters", "process_segmentation", "input_dir_parameters",
                               "output_dir_parameters", "suffix_parameters",
                               "load_parameters", "save_parameters"),
    "mask": ArtifactRule("masks", "process_segmentation", "input_dir_masks",
                         "output_dir_masks", "suffix_masks",
                         "load_mask", "save_mask"),
    "normalized_image": ArtifactRule("normalized images", "process_normalization", "input_dir_normalized_images",
                                     "output_dir_normalized_images", "suffix_normalized_images",
                                     "load_normalized_image", "save_normalized_image"),
    "normalized_mask": ArtifactRule("normalized masks", "process_normalization", "input_dir_normalized_masks",
                                    "output_dir_normalized_masks", "suffix_normalized_masks",
                                    "load_normalized_mask", "save_normalized_mask"),
    "iris_code": ArtifactRule("iris codes", "process_encoding", "input_dir_iris_codes",
                              "output_dir_iris_codes", "suffix_iris_codes",
                              "load_iris_code", "save_iris_code"),
}

# Exceptions that only cost the current image or pair
ITEM_ERRORS = (OSError, ValueError, ArithmeticError, cv2.error)


@dataclass(frozen=True)
class MatchScore:
    first: str
    second: str
    score: float

    def to_line(self) -> str:
        return f"{self.first} {self.second} {self.score:g}"


@dataclass(frozen=True)
class Failure:
    names: Tuple[str, ...]
    message: str


@dataclass
class RunSummary:
    """Outcome of a :meth:`PipelineOrchestrator.run`.

    Attributes:
        processed: Images whose processing completed, in list order.
        failures: Images (or pairs, for a failed match) that were skipped.
        scores: One entry per matched pair, in list order.
    """
    processed: List[str] = field(default_factory=list)
    failures: List[Failure] = field(default_factory=list)
    scores: List[MatchScore] = field(default_factory=list)


def iter_pairs(items: Sequence) -> Iterator[Tuple[int, ...]]:
    """Index chunks (0, 1), (2, 3), ... with a final (n-1,) chunk for odd lengths."""
    for start in range(0, len(items), 2):
        yield tuple(range(start, min(start + 2, len(items))))


def short_name(filename: str) -> str:
    """Image identifier without directories and extension."""
    return os.path.splitext(os.path.basename(filename))[0]


def artifact_path(directory: str, filename: str, suffix: str) -> str:
    return os.path.join(directory, short_name(filename) + suffix)


class ScoreReport:
    """Score file written once per matched pair."""
    def __init__(self, path: str):
        self.path = path
        folder = os.path.dirname(path)
        try:
            if folder and not os.path.exists(folder):
                os.makedirs(folder)
            self._file = open(path, "w")
        except OSError as exc:
            raise ArtifactIOError(f"Cannot create the file for matching scores: {path}",
                                  severity=Severity.FATAL) from exc

    def write(self, score: MatchScore):
        self._file.write(score.to_line() + "\n")
        self._file.flush()

    def close(self):
        self._file.close()

    def __enter__(self) -> "ScoreReport":
        return self

    def __exit__(self, *exc_info):
        self.close()


class PipelineOrchestrator:
    def __init__(self, config: Configuration, eye_factory: Optional[Callable[[], EyeRecord]] = None):
        self.config = config
        self.eye_factory = eye_factory or self._default_eye_factory()

    @property
    def options(self):
        return self.config.options

    def _default_eye_factory(self) -> Callable[[], EyeRecord]:
        segmentator = None
        if self.options.process_segmentation:
            # Created once and shared by every eye of the run
            try:
                segmentator = create_segmentator(self.options.segmentation_method)
            except ValueError as exc:
                raise ConfigError(str(exc)) from exc
        return lambda: EyeRecord(segmentator=segmentator)

    def resolve(self, artifact: str) -> Resolution:
        """Whether the artifact is computed, loaded or absent for every image of this run."""
        rule = ARTIFACTS[artifact]
        if getattr(self.options, rule.stage_flag):
            return Resolution.COMPUTE
        if getattr(self.options, rule.input_dir):
            return Resolution.LOAD
        return Resolution.ABSENT

    def _load_if_resolved(self, artifact: str, filename: str, eye: EyeRecord):
        if self.resolve(artifact) is not Resolution.LOAD:
            return
        rule = ARTIFACTS[artifact]
        path = artifact_path(getattr(self.options, rule.input_dir), filename, getattr(self.options, rule.suffix))
        getattr(eye, rule.load_method)(path)

    def _save_if_configured(self, artifact: str, filename: str, eye: EyeRecord):
        rule = ARTIFACTS[artifact]
        output_dir = getattr(self.options, rule.output_dir)
        if not output_dir:
            return
        if self.resolve(artifact) is Resolution.ABSENT:
            logger.warning("Cannot save %s because they are neither computed nor loaded", rule.description)
            return
        path = artifact_path(output_dir, filename, getattr(self.options, rule.suffix))
        getattr(eye, rule.save_method)(path)

    def process_one_eye(self, filename: str, eye: EyeRecord):
        """Compute, load and save the artifacts of one image according to the configuration."""
        logger.info("Process %s", filename)
        o = self.options

        # The original image is only needed to segment or normalize
        if o.process_segmentation or o.process_normalization:
            if not o.input_dir_original_images:
                raise ConfigError("Cannot segment/normalize without loading original image",
                                  severity=Severity.ITEM)
            eye.load_original_image(os.path.join(o.input_dir_original_images, filename))

        if o.process_segmentation:
            eye.segment(o.min_iris_diameter, o.min_pupil_diameter, o.max_iris_diameter, o.max_pupil_diameter)
            if o.output_dir_segmented_images:
                eye.save_segmented_image(
                    artifact_path(o.output_dir_segmented_images, filename, o.suffix_segmented_images))
            if not o.use_mask:
                eye.init_mask()

        self._load_if_resolved("parameters", filename, eye)
        self._load_if_resolved("mask", filename, eye)

        if o.process_normalization:
            eye.normalize(o.width_of_normalized_iris, o.height_of_normalized_iris)

        self._load_if_resolved("normalized_image", filename, eye)
        self._load_if_resolved("normalized_mask", filename, eye)

        if o.process_encoding:
            eye.encode(self.config.filter_bank)

        self._load_if_resolved("iris_code", filename, eye)

        for artifact in ARTIFACTS:
            self._save_if_configured(artifact, filename, eye)

    def run(self) -> RunSummary:
        """Process the whole image list, pairing consecutive images when matching is enabled."""
        o = self.options
        images = self.config.image_list
        summary = RunSummary()

        logger.info("Start processing %d images", len(images))
        if o.process_matching and self.config.application_mask is None:
            logger.warning("No application points loaded, every cell of the normalized iris is used for matching")

        if o.process_matching and o.output_file_matching_scores:
            report_context = ScoreReport(o.output_file_matching_scores)
        else:
            report_context = nullcontext()

        with report_context as report:
            if o.process_matching:
                chunks = iter_pairs(images)
            else:
                chunks = ((i,) for i in range(len(images)))
            for chunk in chunks:
                self._process_chunk(chunk, images, report, summary)

        logger.info("End processing: %d processed, %d failed, %d scores",
                    len(summary.processed), len(summary.failures), len(summary.scores))
        return summary

    def _process_chunk(self, chunk: Tuple[int, ...], images: Sequence[str],
                       report: Optional[ScoreReport], summary: RunSummary):
        """Process one image, or a pair of images followed by their match."""
        names: Tuple[str, ...] = ()
        try:
            eyes = []
            for index in chunk:
                names = (images[index],)
                logger.info("%d / %d", index + 1, len(images))
                eye = self.eye_factory()
                self.process_one_eye(images[index], eye)
                eyes.append(eye)
                summary.processed.append(images[index])

            if len(eyes) == 2:
                names = (images[chunk[0]], images[chunk[1]])
                result = MatchScore(names[0], names[1], eyes[0].match(eyes[1], self.config.application_mask))
                if report is not None:
                    report.write(result)
                summary.scores.append(result)
        except PipelineError as exc:
            if exc.is_fatal:
                raise
            self._record_failure(summary, names, exc)
        except ITEM_ERRORS as exc:
            self._record_failure(summary, names, exc)

    @staticmethod
    def _record_failure(summary: RunSummary, names: Tuple[str, ...], exc: Exception):
        logger.error("Failed on %s: %s", " ".join(names), exc,
                     exc_info=logger.isEnabledFor(logging.DEBUG))
        summary.failures.append(Failure(names, str(exc)))
