"""
srs_engine.config
-----------------

This module defines the SchedulerConfig class.

Classes:
    SchedulerConfig: Every option the Scheduler reads, passed explicitly on each call.
"""

from __future__ import annotations
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import timedelta
import json
from random import Random
from typing import TypedDict
from typing_extensions import Self
from srs_engine.memory import DEFAULT_PARAMETERS, validate_parameters


class SchedulerConfigDict(TypedDict):
    """
    JSON-serializable dictionary representation of a SchedulerConfig object.
    """

    parameters: list[float]
    desired_retention: float
    learning_steps: list[int]
    relearning_steps: list[int]
    minimum_interval: int
    maximum_interval: int
    fuzz_factor: float
    enable_fuzzing: bool


@dataclass
class SchedulerConfig:
    """
    Configuration of the Scheduler.

    Attributes:
        parameters: The 21 model weights of the FSRS memory model.
        desired_retention: The target probability of recall when a Review-state card comes due.
        learning_steps: Short intervals that schedule cards in the Learning state.
        relearning_steps: Short intervals that schedule cards in the Relearning state.
        minimum_interval: The minimum number of days a Review-state card is scheduled into the future.
        maximum_interval: The maximum number of days a Review-state card is scheduled into the future.
        fuzz_factor: Fractional jitter applied to Review intervals, 0.05 means +/-5%.
        enable_fuzzing: Whether to apply fuzz at all.
        random_source: The random number generator used for fuzz. Not serialized.
    """

    parameters: Sequence[float] = DEFAULT_PARAMETERS
    desired_retention: float = 0.9
    learning_steps: Sequence[timedelta] = (
        timedelta(minutes=1),
        timedelta(minutes=10),
    )
    relearning_steps: Sequence[timedelta] = (timedelta(minutes=10),)
    minimum_interval: int = 1
    maximum_interval: int = 36500
    fuzz_factor: float = 0.05
    enable_fuzzing: bool = True
    random_source: Random = field(default_factory=Random, compare=False, repr=False)

    def __post_init__(self) -> None:
        validate_parameters(self.parameters)
        self.parameters = tuple(self.parameters)
        self.learning_steps = tuple(self.learning_steps)
        self.relearning_steps = tuple(self.relearning_steps)

        if not 0 < self.desired_retention < 1:
            raise ValueError(
                f"desired_retention must be between 0 and 1, got {self.desired_retention}"
            )
        if self.minimum_interval < 1:
            raise ValueError(
                f"minimum_interval must be at least 1 day, got {self.minimum_interval}"
            )
        if self.maximum_interval < self.minimum_interval:
            raise ValueError(
                f"maximum_interval ({self.maximum_interval}) is lower than minimum_interval ({self.minimum_interval})"
            )
        if not 0 <= self.fuzz_factor < 1:
            raise ValueError(
                f"fuzz_factor must be in [0, 1), got {self.fuzz_factor}"
            )
        for step in (*self.learning_steps, *self.relearning_steps):
            if step <= timedelta(0):
                raise ValueError(f"learning steps must be positive, got {step}")

    def to_dict(self) -> SchedulerConfigDict:
        """
        Returns a dictionary representation of the SchedulerConfig object.

        The random source is not part of the representation.

        Returns:
            SchedulerConfigDict: A dictionary representation of the SchedulerConfig object.
        """

        return {
            "parameters": list(self.parameters),
            "desired_retention": self.desired_retention,
            "learning_steps": [
                int(learning_step.total_seconds())
                for learning_step in self.learning_steps
            ],
            "relearning_steps": [
                int(relearning_step.total_seconds())
                for relearning_step in self.relearning_steps
            ],
            "minimum_interval": self.minimum_interval,
            "maximum_interval": self.maximum_interval,
            "fuzz_factor": self.fuzz_factor,
            "enable_fuzzing": self.enable_fuzzing,
        }

    @classmethod
    def from_dict(
        cls, source_dict: SchedulerConfigDict, random_source: Random | None = None
    ) -> Self:
        """
        Creates a SchedulerConfig object from an existing dictionary.

        Args:
            source_dict: A dictionary representing an existing SchedulerConfig object.
            random_source: The random source to attach, a fresh Random if None.

        Returns:
            Self: A SchedulerConfig object created from the provided dictionary.
        """

        return cls(
            parameters=source_dict["parameters"],
            desired_retention=source_dict["desired_retention"],
            learning_steps=[
                timedelta(seconds=learning_step)
                for learning_step in source_dict["learning_steps"]
            ],
            relearning_steps=[
                timedelta(seconds=relearning_step)
                for relearning_step in source_dict["relearning_steps"]
            ],
            minimum_interval=source_dict["minimum_interval"],
            maximum_interval=source_dict["maximum_interval"],
            fuzz_factor=source_dict["fuzz_factor"],
            enable_fuzzing=source_dict["enable_fuzzing"],
            random_source=random_source if random_source is not None else Random(),
        )

    def to_json(self, indent: int | str | None = None) -> str:
        """
        Returns a JSON-serialized string of the SchedulerConfig object.

        Args:
            indent: Equivalent argument to the indent in json.dumps()

        Returns:
            str: A JSON-serialized string of the SchedulerConfig object.
        """

        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, source_json: str, random_source: Random | None = None) -> Self:
        source_dict: SchedulerConfigDict = json.loads(source_json)
        return cls.from_dict(source_dict=source_dict, random_source=random_source)


__all__ = ["SchedulerConfig"]
