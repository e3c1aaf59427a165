"""Problem detail payloads carried by ordering errors."""

from __future__ import annotations

import json
import logging

import pytest

from ruleorder.errors import (
    CrossPhaseConflictError,
    CyclicDependencyError,
    OrderingError,
    UnresolvedReferenceWarning,
    log_problem,
    problem,
)
from tests._helpers.expect import expect_equal, expect_in, expect_true
from tests._helpers.providers import ScanJavaTypes


def test_problem_defaults_type_and_instance() -> None:
    """problem() derives the type URI from the code and generates an instance id."""
    detail = problem("schedule.cycle", "Cycle", "a -> b -> a")

    expect_equal(detail.type, "https://problems.ruleorder.dev/schedule.cycle", label="type")
    expect_true(detail.instance, message="instance generated")
    expect_equal(
        set(detail.to_dict()),
        {"type", "title", "detail", "instance", "code"},
        label="payload keys without extras",
    )


def test_errors_share_ordering_base() -> None:
    """Fatal scheduling failures can be caught as OrderingError."""
    error = CrossPhaseConflictError(
        "render",
        "scan",
        direction="before",
        owner_phase="reporting",
        target_phase="discovery",
    )

    expect_true(isinstance(error, OrderingError), message="common base class")
    expect_equal(error.problem_detail.extras["target_id"], "scan", label="extras")
    expect_in("render", str(error), label="message")


def test_log_problem_emits_json(caplog: pytest.LogCaptureFixture) -> None:
    """Problem details are logged as a single JSON document."""
    error = CyclicDependencyError("discovery", ["b", "a"], cycle=["a", "b"])
    logger = logging.getLogger("ruleorder.tests")

    with caplog.at_level(logging.ERROR, logger="ruleorder.tests"):
        log_problem(logger, error.problem_detail)

    payload = json.loads(caplog.records[0].getMessage())
    expect_equal(payload["code"], "schedule.cycle", label="code")
    expect_equal(payload["extras"]["provider_ids"], ["a", "b"], label="sorted ids")


def test_unresolved_warning_names_implementation() -> None:
    """Implementation references are rendered by qualified name."""
    warning = UnresolvedReferenceWarning("report", ScanJavaTypes, direction="after")

    expect_true(warning.reference_name.endswith("ScanJavaTypes"), message="qualified name")
    expect_true(isinstance(warning, UserWarning), message="warning category")
    expect_equal(
        warning,
        UnresolvedReferenceWarning("report", ScanJavaTypes, direction="after"),
        label="equality by content",
    )
