"""Stage sequencing for a generation run.

A run is a fixed chain of stages: UnrealBuildTool writes the raw database,
the database is rewritten, and optionally UnrealHeaderTool regenerates the
reflection headers. Each stage ends with a completion notification
(normally a child process exit); the sequencer decides what runs next.

Usage:
    seq = GenerationSequencer(include_headers=True)
    stage = seq.start()
    while stage is not None:
        returncode = run(stage)
        stage = seq.notify(ProcessExit(stage, returncode))
    print(seq.status())
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger("unreal-codegen")


class TaskState(enum.Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "inprogress"
    COMPLETED = "completed"
    FAILED = "failed"


class GenerationStage(enum.Enum):
    DATABASE = "database"
    PROCESS = "process"
    HEADERS = "headers"
    FINAL = "final"


class SequencerError(RuntimeError):
    """A stage was started or reported out of order."""


@dataclass(frozen=True)
class ProcessExit:
    stage: GenerationStage
    returncode: int


class GenerationSequencer:
    def __init__(self, include_database: bool = True, include_headers: bool = False):
        self.stages: list[GenerationStage] = []
        if include_database:
            self.stages.append(GenerationStage.DATABASE)
        self.stages.append(GenerationStage.PROCESS)
        if include_headers:
            self.stages.append(GenerationStage.HEADERS)

        self.states: dict[GenerationStage, TaskState] = {}
        self.current: Optional[GenerationStage] = None

    def state_of(self, stage: GenerationStage) -> Optional[TaskState]:
        return self.states.get(stage)

    @property
    def completed(self) -> bool:
        return self.states.get(GenerationStage.FINAL) is TaskState.COMPLETED

    @property
    def failed(self) -> bool:
        return any(state is TaskState.FAILED for state in self.states.values())

    def start(self) -> GenerationStage:
        """Schedule every stage and begin the first one."""
        if self.current is not None:
            raise SequencerError(f"Sequencer already started at {self.current.value}")
        for stage in self.stages:
            self.states[stage] = TaskState.SCHEDULED
        first = self.stages[0]
        self._begin(first)
        return first

    def _begin(self, stage: GenerationStage) -> None:
        if (
            self.current is not None
            and self.current is not stage
            and self.states.get(self.current) is not TaskState.COMPLETED
        ):
            raise SequencerError(
                f"Cannot start {stage.value}: {self.current.value} still in progress"
            )
        logger.debug("Stage %s -> %s", stage.value, TaskState.IN_PROGRESS.value)
        self.current = stage
        self.states[stage] = TaskState.IN_PROGRESS

    def notify(self, event: ProcessExit) -> Optional[GenerationStage]:
        """Consume a completion event and return the next stage to run.

        Returns None when the run is finished, successfully or not.
        """
        if event.stage is not self.current:
            raise SequencerError(
                f"Got completion for {event.stage.value}, "
                f"current stage is {self.current.value if self.current else 'none'}"
            )
        if self.states.get(event.stage) is not TaskState.IN_PROGRESS:
            raise SequencerError(f"Stage {event.stage.value} is not in progress")

        if event.returncode != 0:
            logger.debug("Stage %s failed with %d", event.stage.value, event.returncode)
            self.states[event.stage] = TaskState.FAILED
            return None

        self.states[event.stage] = TaskState.COMPLETED
        index = self.stages.index(event.stage)
        if index + 1 < len(self.stages):
            next_stage = self.stages[index + 1]
            self._begin(next_stage)
            return next_stage

        self.current = GenerationStage.FINAL
        self.states[GenerationStage.FINAL] = TaskState.COMPLETED
        return None

    def status(self) -> str:
        if self.current is None:
            return "Idle"
        if self.completed:
            return "Completed"
        for stage, state in self.states.items():
            if state is TaskState.FAILED:
                return f"Failed at {stage.value}"
        return f"{self.current.value} -> {self.states[self.current].value}"
