"""Subsystem risk scoring and per-vulnerability payoff derivation."""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from nashlab.config import SecurityGameConfig
from nashlab.core.errors import InvalidInputError
from nashlab.models.security import Vulnerability, VulnerabilityDetail

logger = logging.getLogger(__name__)


def compute_risk_scores(
    functional_matrix: Sequence[Sequence[float]],
    topology_matrix: Sequence[Sequence[float]],
    num_subsystems: int,
    w1: float,
    w2: float,
) -> list[float]:
    """Weighted dependency risk of each subsystem.

    ``risk[s] = w1 * sum(functional_matrix[s]) + w2 * sum(topology_matrix[s])``

    Args:
        functional_matrix: Functional dependencies; row ``s`` lists what ``s`` depends on.
        topology_matrix: Network connections between subsystems.
        num_subsystems: Number of leading rows to score.
        w1: Weight of functional dependencies.
        w2: Weight of network topology.

    Returns:
        One risk score per subsystem.

    Raises:
        InvalidInputError: If either matrix has fewer than ``num_subsystems`` rows.
    """
    if num_subsystems < 0:
        raise InvalidInputError(f"num_subsystems must be non-negative, got {num_subsystems}")
    for label, matrix in (("functional", functional_matrix), ("topology", topology_matrix)):
        if len(matrix) < num_subsystems:
            raise InvalidInputError(
                f"The {label} matrix has {len(matrix)} rows, expected at least {num_subsystems}"
            )

    scores = []
    for s in range(num_subsystems):
        functional_dependency = sum(float(v) for v in functional_matrix[s])
        topology_dependency = sum(float(v) for v in topology_matrix[s])
        scores.append(w1 * functional_dependency + w2 * topology_dependency)
    return scores


def exploit_likelihood(vul: Vulnerability, k4: float, k5: float) -> float:
    """Probability-like weight in [0, 1] that an exploit attempt succeeds.

    ``k4`` weights the exploitability score and ``k5`` the presence of a
    public exploit. With both weights zero the exploitability score alone is used.
    """
    if k4 + k5 == 0:
        return vul.exploit_score / 10.0
    return (k4 * vul.exploit_score / 10.0 + k5 * vul.exploit_exists) / (k4 + k5)


def compute_vulnerability_details(
    vulnerabilities: Sequence[Vulnerability | Mapping[str, Any]],
    risk_scores: Sequence[float],
    k4: float = SecurityGameConfig.DEFAULT_K4,
    k5: float = SecurityGameConfig.DEFAULT_K5,
) -> list[VulnerabilityDetail]:
    """Derive attacker/defender payoff terms for each vulnerability.

    With subsystem risk ``r`` and success likelihood ``L``:

    - ``iA = impact * (1 + r)``: damage grows with how much depends on the subsystem
    - ``cD = 1 + impact / 2``: patching high-impact components costs more
    - ``cA = 1 + (10 - exploitability) * (1 - exploit_exists / 2)``
    - ``prA = iA * L - cA``: expected gain net of the attack cost
    - ``vul_severity = iA * L``: expected damage

    Raises:
        InvalidInputError: On negative weights or a subsystem index with no risk score.
    """
    if k4 < 0 or k5 < 0:
        raise InvalidInputError(f"k4 and k5 must be non-negative, got k4={k4}, k5={k5}")

    details = []
    for n, raw in enumerate(vulnerabilities, start=1):
        vul = raw if isinstance(raw, Vulnerability) else Vulnerability.model_validate(raw)
        if vul.subsystem_index >= len(risk_scores):
            raise InvalidInputError(
                f"Vulnerability {n} targets subsystem {vul.subsystem_index}, "
                f"but only {len(risk_scores)} risk scores were given"
            )

        risk = float(risk_scores[vul.subsystem_index])
        likelihood = exploit_likelihood(vul, k4, k5)
        i_a = vul.impact_score * (1.0 + risk)
        c_d = 1.0 + 0.5 * vul.impact_score
        c_a = 1.0 + (10.0 - vul.exploit_score) * (1.0 - 0.5 * vul.exploit_exists)

        details.append(
            VulnerabilityDetail(
                id=vul.cve_id or f"V{n}",
                subsystem_index=vul.subsystem_index,
                risk=risk,
                likelihood=likelihood,
                i_a=i_a,
                c_d=c_d,
                c_a=c_a,
                pr_a=i_a * likelihood - c_a,
                vul_severity=i_a * likelihood,
            )
        )

    logger.debug("Derived %d vulnerability details", len(details))
    return details


def prioritize_patches(details: Sequence[VulnerabilityDetail]) -> list[VulnerabilityDetail]:
    """Order vulnerabilities by impact prevented per unit of patch cost, best first."""
    return sorted(details, key=lambda d: d.roi_ratio, reverse=True)
