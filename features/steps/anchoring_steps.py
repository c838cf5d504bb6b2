"""
Step definitions for anchor creation and resolution scenarios.
"""

from behave import given, step, then, when  # type: ignore[import-untyped]

from textanchor.containers import AttributeContainerResolver
from textanchor.coordinator import AnchorCoordinator, ResolutionStatus
from textanchor.metrics import Operation
from textanchor.models import AnchorStrategy
from textanchor.selection import capture_selection
from textanchor.tree import parse_html, text_content


# === Setup ===


@given("a document:")  # type: ignore[misc]
def step_given_document(context):
    """Parse the HTML snapshot the selection is made in."""
    context.tree = parse_html(context.text)


@given("the resolution budget is {budget:d} ms")  # type: ignore[misc]
def step_given_budget(context, budget):
    context.anchor_config = context.anchor_config.model_copy(
        update={"max_resolution_ms": float(budget)}
    )


# === Actions ===


@when('I select "{text}" in container "{container_id}"')  # type: ignore[misc]
def step_when_select(context, text, container_id):
    """Capture the first occurrence of the text and create an anchor for it."""
    container = AttributeContainerResolver().find_container(context.tree, container_id)
    assert container is not None, f"No container with id {container_id}"

    start = text_content(container).index(text)
    selection = capture_selection(container, start, start + len(text), container_id)
    context.coordinator = AnchorCoordinator(context.anchor_config)
    context.anchor = context.coordinator.create_anchor(selection, context.tree)


@step("the document changes to:")  # type: ignore[misc]
def step_document_changes(context):
    context.tree = parse_html(context.text)


@step("the anchor end offset is changed to {offset:d}")  # type: ignore[misc]
def step_damage_anchor(context, offset):
    context.anchor = context.anchor.model_copy(update={"end_offset": offset})


@step("I resolve the anchor")  # type: ignore[misc]
def step_resolve(context):
    context.result = context.coordinator.resolve(context.anchor, context.tree)


# === Assertions ===


@then('the anchor path is "{path}"')  # type: ignore[misc]
def step_then_anchor_path(context, path):
    actual = context.anchor.structural_path
    assert actual == path, f"Expected path {path} but got {actual}"


@then("the anchor offsets are {start:d} to {end:d}")  # type: ignore[misc]
def step_then_anchor_offsets(context, start, end):
    actual = (context.anchor.start_offset, context.anchor.end_offset)
    assert actual == (start, end), f"Expected offsets {(start, end)} but got {actual}"


@then("the anchor confidence is above {threshold:f}")  # type: ignore[misc]
def step_then_confidence_above(context, threshold):
    actual = context.anchor.confidence
    assert actual > threshold, f"Expected confidence above {threshold} but got {actual}"


@then('the result is FOUND via "{strategy}"')  # type: ignore[misc]
def step_then_found_via(context, strategy):
    result = context.result
    assert result.found, f"Expected found but got {result.status.value}"
    assert result.strategy == AnchorStrategy(strategy), (
        f"Expected strategy {strategy} but got {result.strategy}"
    )


@then('the resolved text is "{expected_text}"')  # type: ignore[misc]
def step_then_resolved_text(context, expected_text):
    actual = context.result.span.text
    assert actual == expected_text, f"Expected '{expected_text}' but got '{actual}'"


@then("the result is {status:w}")  # type: ignore[misc]
def step_then_status(context, status):
    expected = ResolutionStatus[status]
    actual = context.result.status
    assert actual == expected, f"Expected {expected.value} but got {actual.value}"
    if expected != ResolutionStatus.FOUND:
        assert context.result.span is None


@then("no strategy was attempted")  # type: ignore[misc]
def step_then_no_attempts(context):
    assert context.result.attempts == (), f"Strategies ran: {context.result.attempts}"


@then("the last metrics sample is a failed resolution")  # type: ignore[misc]
def step_then_failed_sample(context):
    sample = context.coordinator.metrics.samples[-1]
    assert sample.operation == Operation.RESOLVE
    assert not sample.success
