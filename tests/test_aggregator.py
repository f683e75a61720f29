"""Unit tests for result aggregation and presentation."""

from studentbox.services.student_import import (
    ImportResultAggregator,
    present_result,
    summarize_result,
)


def test_aggregator_counts(make_student) -> None:
    aggregator = ImportResultAggregator(total_count=4)
    aggregator.record_success()
    aggregator.record_success()
    aggregator.record_duplicate(make_student(2), "already exists")
    aggregator.record_error(make_student(3), "write failed")

    result = aggregator.result()

    assert result.total_count == 4
    assert result.success_count == 2
    assert result.duplicate_count == 1
    assert result.error_count == 1
    assert result.duplicate_students[0].reason == "already exists"
    assert result.errors[0].error == "write failed"
    assert result.errors[0].name == "Student3 Test"
    assert aggregator.processed_count == 4


def test_error_without_student() -> None:
    aggregator = ImportResultAggregator(total_count=1)
    aggregator.record_error(None, "chunk failed")
    error = aggregator.result().errors[0]
    assert error.name is None
    assert error.id_number is None


def test_result_is_a_snapshot(make_student) -> None:
    aggregator = ImportResultAggregator(total_count=2)
    aggregator.record_duplicate(make_student(0), "dup")
    first = aggregator.result()
    aggregator.record_duplicate(make_student(1), "dup")
    assert first.duplicate_count == 1
    assert len(first.duplicate_students) == 1


def _result_with(make_student, duplicates: int, errors: int):
    aggregator = ImportResultAggregator(total_count=duplicates + errors)
    for i in range(duplicates):
        aggregator.record_duplicate(make_student(i), "dup")
    for i in range(errors):
        aggregator.record_error(make_student(100 + i), "boom")
    return aggregator.result()


def test_present_result_caps_details(make_student) -> None:
    result = _result_with(make_student, duplicates=13, errors=11)

    shown = present_result(result, detail_limit=10, batch_id="abc")

    assert shown.duplicate_count == 13
    assert shown.error_count == 11
    assert len(shown.duplicate_students) == 10
    assert len(shown.errors) == 10
    assert shown.more_duplicates == 3
    assert shown.more_errors == 1
    assert shown.batch_id == "abc"
    # The full result is untouched
    assert len(result.duplicate_students) == 13


def test_present_result_under_limit(make_student) -> None:
    shown = present_result(_result_with(make_student, duplicates=2, errors=0))
    assert len(shown.duplicate_students) == 2
    assert shown.more_duplicates == 0
    assert shown.more_errors == 0


def test_summarize_result(make_student) -> None:
    aggregator = ImportResultAggregator(total_count=5)
    for _ in range(3):
        aggregator.record_success()
    aggregator.record_duplicate(make_student(3), "dup")
    aggregator.record_error(make_student(4), "boom")

    text = summarize_result(aggregator.result())

    assert text.splitlines() == [
        "Imported 3 of 5 students.",
        "Skipped 1 duplicate(s).",
        "1 record(s) failed to import.",
    ]


def test_summarize_clean_result() -> None:
    aggregator = ImportResultAggregator(total_count=1)
    aggregator.record_success()
    assert summarize_result(aggregator.result()) == "Imported 1 of 1 students."
