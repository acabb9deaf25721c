"""Console report of scenario verdicts."""

import sys
from collections.abc import Sequence
from typing import TextIO

from auth_stress.models import AggregateResult, ScenarioVerdict

EXCELLENT_RATE = 90.0
ACCEPTABLE_RATE = 70.0


def rating(aggregate: AggregateResult) -> str:
    """Informational tier of a success rate; does not affect the verdict."""
    rate = aggregate.success_rate_percent
    if rate >= EXCELLENT_RATE:
        return "excellent"
    if rate >= ACCEPTABLE_RATE:
        return "acceptable"
    return "poor"


def format_verdict(verdict: ScenarioVerdict) -> str:
    aggregate = verdict.aggregate
    lines = [
        f"=== {verdict.scenario.upper()} RESULTS ===",
        f"Total requests: {aggregate.total_requests}",
        f"Successful: {aggregate.success_count}",
        f"Errors: {aggregate.error_count}",
        f"Total time: {aggregate.total_elapsed_ms}ms",
        f"Average response time: {aggregate.average_response_time_ms:.2f}ms",
        f"P95 response time: {aggregate.p95_response_time_ms:.2f}ms",
        f"Requests per second: {aggregate.requests_per_second:.2f}",
        f"Success rate: {aggregate.success_rate_percent:.2f}% ({rating(aggregate)})",
        f"Verdict: {'PASSED' if verdict.passed else 'FAILED'}",
    ]
    lines.extend(f"  - {reason}" for reason in verdict.reasons)

    if aggregate.error_samples:
        lines.append("Error samples:")
        for number, sample in enumerate(aggregate.error_samples, start=1):
            status = sample.status_code if sample.status_code is not None else "ERROR"
            lines.append(f"  {number}. Status: {status}, Error: {sample.error_message}")

    return "\n".join(lines)


def format_summary(verdicts: Sequence[ScenarioVerdict]) -> str:
    lines = ["=== SUMMARY ==="]
    for verdict in verdicts:
        lines.append(
            f"{verdict.scenario} - success {verdict.aggregate.success_rate_percent:.2f}% "
            f"- {'PASSED' if verdict.passed else 'FAILED'}"
        )
    passed = sum(1 for v in verdicts if v.passed)
    lines.append(f"{passed}/{len(verdicts)} scenarios passed")
    return "\n".join(lines)


def print_report(verdicts: Sequence[ScenarioVerdict], stream: TextIO | None = None) -> None:
    """Write every verdict followed by the summary."""
    out = stream or sys.stdout
    for verdict in verdicts:
        out.write("\n" + format_verdict(verdict) + "\n")
    out.write("\n" + format_summary(verdicts) + "\n")
