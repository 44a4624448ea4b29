"""Per-identity results collected into phase and fleet reports."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from src.config.constants import MAX_FAILURE_EXIT_CODE

OK = "ok"
FAILED = "failed"
SKIPPED = "skipped"


@dataclass
class IdentityResult:
    identity: str
    status: str                 # "ok", "failed" or "skipped"
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == OK

    @property
    def failed(self) -> bool:
        return self.status == FAILED


@dataclass
class PhaseReport:
    phase: str
    results: List[IdentityResult] = field(default_factory=list)

    def record(self, identity: str, status: str, message: str = "") -> IdentityResult:
        result = IdentityResult(identity, status, message)
        self.results.append(result)
        return result

    def extend(self, results: List[IdentityResult]) -> None:
        self.results.extend(results)
        self.results.sort(key=lambda r: r.identity)

    def result_for(self, identity: str) -> Optional[IdentityResult]:
        return next((r for r in self.results if r.identity == identity), None)

    @property
    def passed(self) -> bool:
        return not any(r.failed for r in self.results)

    @property
    def n_ok(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def n_failed(self) -> int:
        return sum(1 for r in self.results if r.failed)

    @property
    def n_skipped(self) -> int:
        return sum(1 for r in self.results if r.status == SKIPPED)

    @property
    def ok_identities(self) -> List[str]:
        return [r.identity for r in self.results if r.ok]

    @property
    def failed_identities(self) -> List[str]:
        return [r.identity for r in self.results if r.failed]

    def summary(self) -> str:
        lines = [
            f"{self.phase}: {self.n_ok} ok, {self.n_failed} failed, {self.n_skipped} skipped"
        ]
        for r in self.results:
            if not r.ok:
                lines.append(f"  [{r.status.upper()}] {r.identity}: {r.message}")
        return "\n".join(lines)


@dataclass
class FleetReport:
    """All phase reports of one install or clean run."""

    operation: str
    phases: List[PhaseReport] = field(default_factory=list)

    def add(self, phase: PhaseReport) -> PhaseReport:
        self.phases.append(phase)
        return phase

    def phase(self, name: str) -> Optional[PhaseReport]:
        return next((p for p in self.phases if p.phase == name), None)

    @property
    def failed_identities(self) -> List[str]:
        failed = set()
        for p in self.phases:
            failed.update(p.failed_identities)
        return sorted(failed)

    @property
    def passed(self) -> bool:
        return all(p.passed for p in self.phases)

    @property
    def exit_code(self) -> int:
        return min(len(self.failed_identities), MAX_FAILURE_EXIT_CODE)

    def rows(self) -> List[Dict[str, str]]:
        return [
            {
                "operation": self.operation,
                "phase": p.phase,
                "identity": r.identity,
                "status": r.status,
                "message": r.message,
            }
            for p in self.phases
            for r in p.results
        ]

    def summary(self) -> str:
        lines = [f"{self.operation}: {len(self.failed_identities)} identities failed"]
        lines.extend(p.summary() for p in self.phases)
        return "\n".join(lines)
