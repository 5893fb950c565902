from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from kdm_tracker.migrations.transformers import TransformContext

StepFn = Callable[[Dict[str, Any], TransformContext], Dict[str, Any]]


@dataclass(frozen=True)
class MigrationStep:
    from_version: str
    to_version: str
    apply: StepFn
    description: str = ""


class MigrationRegistry:
    """Append-only list of migration steps, looked up by exact version string."""

    def __init__(self, steps: Iterable[MigrationStep] = ()) -> None:
        self._steps: List[MigrationStep] = []
        for step in steps:
            self.register(step)

    @property
    def steps(self) -> Tuple[MigrationStep, ...]:
        return tuple(self._steps)

    def register(self, step: MigrationStep) -> None:
        if step.from_version == step.to_version:
            raise ValueError(f"Migration step {step.from_version} does not change the version")
        if self.step_from(step.from_version) is not None:
            raise ValueError(f"Migration from version {step.from_version} already registered")
        self._steps.append(step)

    def step_from(self, version: str) -> Optional[MigrationStep]:
        for step in self._steps:
            if step.from_version == version:
                return step
        return None

    def steps_from(self, version: str, target_version: str) -> Optional[List[MigrationStep]]:
        """Return the contiguous chain from ``version`` to ``target_version``.

        An empty list means the document is already current; ``None`` means
        there is no path.
        """
        if version == target_version:
            return []

        chain: List[MigrationStep] = []
        seen = {version}
        current = version
        while current != target_version:
            step = self.step_from(current)
            if step is None or step.to_version in seen:
                return None
            chain.append(step)
            seen.add(step.to_version)
            current = step.to_version
        return chain
