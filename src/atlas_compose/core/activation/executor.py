# src/atlas_compose/core/activation/executor.py
"""
Executor de planos de ativação.

Política:
    - Uma ação espera as ações anteriores da mesma unit e das units em
      `waits_for`
    - Ações independentes rodam em paralelo (ThreadPoolExecutor)
    - Ações `noop` não são enviadas ao backend
    - Falha de uma ação faz com que as ações que dependem dela sejam
      puladas; com `fail_fast`, nenhuma nova ação é despachada após a
      primeira falha
"""

from __future__ import annotations

from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from atlas_compose.core.backends import ServiceBackend, ServiceOutcome
from atlas_compose.core.render.types import ServiceUnitDescriptor

from .types import Action, ActionKind

OK = "ok"
FAILED = "failed"
SKIPPED = "skipped"
NOOP = "noop"


@dataclass(frozen=True)
class ActionOutcome:
    action: Action
    status: str
    message: str = ""
    exit_status: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.action.to_dict(),
            "status": self.status,
            "message": self.message,
            "exit_status": self.exit_status,
        }


@dataclass(frozen=True)
class ActivationReport:
    outcomes: Tuple[ActionOutcome, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return all(o.status in (OK, NOOP) for o in self.outcomes)

    def failures(self) -> List[ActionOutcome]:
        return [o for o in self.outcomes if o.status == FAILED]

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": self.ok, "outcomes": [o.to_dict() for o in self.outcomes]}


def _prerequisites(actions: List[Action]) -> List[Set[int]]:
    prereqs: List[Set[int]] = []
    for i, action in enumerate(actions):
        blockers = set(action.waits_for) | {action.unit}
        prereqs.append({j for j in range(i) if actions[j].unit in blockers})
    return prereqs


def _run(backend: ServiceBackend, action: Action, descriptor: Optional[ServiceUnitDescriptor]) -> ServiceOutcome:
    try:
        return backend.apply(action.unit, action.kind.value, descriptor)
    except Exception as e:  # noqa: BLE001
        return ServiceOutcome(ok=False, message=f"{type(e).__name__}: {e}")


def apply_plan(
    actions: Iterable[Action],
    units: Iterable[ServiceUnitDescriptor],
    backend: ServiceBackend,
    *,
    max_workers: int = 4,
    fail_fast: bool = True,
) -> ActivationReport:
    """
    Aplica o plano contra o service backend.

    O relatório preserva a ordem do plano, independente da ordem de término.
    """
    plan = list(actions)
    descriptors: Mapping[str, ServiceUnitDescriptor] = {u.name: u for u in units}
    prereqs = _prerequisites(plan)

    outcomes: Dict[int, ActionOutcome] = {}
    running: Dict[Future, int] = {}
    failed_any = False

    def settle(i: int, status: str, message: str = "", exit_status: Optional[int] = None) -> None:
        outcomes[i] = ActionOutcome(action=plan[i], status=status, message=message, exit_status=exit_status)

    with ThreadPoolExecutor(max_workers=max(1, int(max_workers))) as pool:
        while len(outcomes) < len(plan):
            progressed = False

            for i, action in enumerate(plan):
                if i in outcomes or i in running.values():
                    continue
                if any(j not in outcomes for j in prereqs[i]):
                    continue

                blocked = [plan[j] for j in prereqs[i] if outcomes[j].status in (FAILED, SKIPPED)]
                if blocked:
                    settle(i, SKIPPED, f"blocked by {blocked[0]}")
                    progressed = True
                elif failed_any and fail_fast:
                    settle(i, SKIPPED, "not dispatched after earlier failure")
                    progressed = True
                elif action.kind == ActionKind.NOOP:
                    settle(i, NOOP)
                    progressed = True
                else:
                    future = pool.submit(_run, backend, action, descriptors.get(action.unit))
                    running[future] = i

            if progressed:
                continue

            if not running:
                break  # pragma: no cover

            done, _ = wait(list(running), return_when=FIRST_COMPLETED)
            for future in done:
                i = running.pop(future)
                result = future.result()
                if result.ok:
                    settle(i, OK, result.message, result.exit_status)
                else:
                    settle(i, FAILED, result.message, result.exit_status)
                    failed_any = True

    return ActivationReport(outcomes=tuple(outcomes[i] for i in sorted(outcomes)))
