import os

from capture_timestamp import DEFAULT_COMPARATOR
from rename_sequencer import (
    FileEntry, RenameDirective, SequenceState, SkipReason,
    advance, destination_name, plan_renames, sort_entries
)
from conftest import ts

DEST = os.path.join("photos")


def nothing_exists(path):
    return False


def plan(entries, exists=nothing_exists):
    return list(plan_renames(entries, DEST, exists=exists))


def dest(name):
    return os.path.join(DEST, name)


def test_destination_name():
    assert destination_name(ts(2020, 5, 1), 1, ".jpg") == "2020_05_01-0001.jpg"
    assert destination_name(ts(987, 12, 31), 12345, ".CR2") == "987_12_31-12345.CR2"


class TestAdvance:
    def test_first_timestamp_starts_at_one(self):
        state = advance(SequenceState(), ts(2020, 5, 1))
        assert state.counter == 1
        assert state.previous_numbered

    def test_same_day_increments(self):
        state = advance(advance(SequenceState(), ts(2020, 5, 1, 9)), ts(2020, 5, 1, 10))
        assert state.counter == 2

    def test_equal_timestamp_keeps_counter(self):
        state = advance(advance(SequenceState(), ts(2020, 5, 1, 9)), ts(2020, 5, 1, 9, offset=60))
        assert state.counter == 1

    def test_new_day_resets(self):
        state = SequenceState(ts(2020, 5, 1, 9), 7, True)
        assert advance(state, ts(2020, 5, 2, 9)).counter == 1

    def test_unnumbered_step_does_not_consume(self):
        state = SequenceState(ts(2020, 5, 1, 9), 3, True)
        skipped = advance(state, ts(2020, 5, 1, 10), numbered=False)
        assert skipped.counter == 3
        assert skipped.previous == ts(2020, 5, 1, 10)
        assert advance(skipped, ts(2020, 5, 1, 10)).counter == 4

    def test_unnumbered_repeat_passes_the_number_on(self):
        state = SequenceState(ts(2020, 5, 1, 9), 3, True)
        skipped = advance(state, ts(2020, 5, 1, 9), numbered=False)
        assert skipped.counter == 3
        assert skipped.previous_numbered
        assert advance(skipped, ts(2020, 5, 1, 9)).counter == 3


class TestPlanRenames:
    def test_duplicate_timestamps_collide(self):
        entries = [
            FileEntry("in/a.jpg", ts(2020, 5, 1, 10)),
            FileEntry("in/b.jpg", ts(2020, 5, 1, 10)),
            FileEntry("in/c.jpg", ts(2020, 5, 2, 9)),
        ]
        outcomes = plan(entries)

        assert outcomes[0].directive == RenameDirective("in/a.jpg", dest("2020_05_01-0001.jpg"))
        assert outcomes[1].directive is None
        assert outcomes[1].skip_reason is SkipReason.DESTINATION_EXISTS
        assert outcomes[1].destination == dest("2020_05_01-0001.jpg")
        assert outcomes[2].directive == RenameDirective("in/c.jpg", dest("2020_05_02-0001.jpg"))

    def test_counts_within_a_day_and_resets(self):
        entries = [
            FileEntry("a.jpg", ts(2020, 5, 1, 8)),
            FileEntry("b.jpg", ts(2020, 5, 1, 9)),
            FileEntry("c.jpg", ts(2020, 5, 1, 9, 0, 0, 1)),
            FileEntry("d.jpg", ts(2020, 5, 3, 7)),
            FileEntry("e.jpg", ts(2020, 5, 3, 8)),
        ]
        assert [o.counter for o in plan(entries)] == [1, 2, 3, 1, 2]

    def test_first_of_every_date_is_one(self):
        entries = sort_entries([
            FileEntry("x%d.jpg" % i, ts(2020, 1 + i % 3, 1 + i % 5, i % 24)) for i in range(40)
        ])
        previous = None
        for outcome in plan(entries):
            current = outcome.entry.timestamp
            if previous is None or not DEFAULT_COMPARATOR.same_date(previous, current):
                assert outcome.counter == 1
            previous = current

    def test_adjacent_equal_timestamps_share_counter(self):
        entries = [
            FileEntry("a.jpg", ts(2020, 5, 1, 8)),
            FileEntry("b.jpg", ts(2020, 5, 1, 9)),
            FileEntry("c.png", ts(2020, 5, 1, 9)),
        ]
        outcomes = plan(entries)
        assert outcomes[1].counter == outcomes[2].counter == 2
        # different extension, so no collision
        assert outcomes[2].directive == RenameDirective("c.png", dest("2020_05_01-0002.png"))

    def test_no_extension_is_skipped_without_using_a_number(self):
        entries = [
            FileEntry("a.jpg", ts(2020, 5, 1, 8)),
            FileEntry("README", ts(2020, 5, 1, 9)),
            FileEntry("c.jpg", ts(2020, 5, 1, 10)),
        ]
        outcomes = plan(entries)

        assert outcomes[1].skip_reason is SkipReason.NO_EXTENSION
        assert outcomes[1].directive is None
        assert outcomes[1].counter is None
        assert outcomes[2].directive.destination == dest("2020_05_01-0002.jpg")

    def test_no_extension_with_same_time_as_next_file(self):
        entries = [
            FileEntry("a.jpg", ts(2020, 5, 1, 8)),
            FileEntry("dir.d/noext", ts(2020, 5, 1, 9)),
            FileEntry("c.jpg", ts(2020, 5, 1, 9)),
        ]
        outcomes = plan(entries)
        assert outcomes[1].skip_reason is SkipReason.NO_EXTENSION
        assert outcomes[2].directive.destination == dest("2020_05_01-0002.jpg")

    def test_no_extension_opening_a_new_day(self):
        entries = [
            FileEntry("a.jpg", ts(2020, 5, 1, 8)),
            FileEntry("noext", ts(2020, 5, 2, 8)),
            FileEntry("c.jpg", ts(2020, 5, 2, 9)),
        ]
        assert plan(entries)[2].directive.destination == dest("2020_05_02-0001.jpg")

    def test_existing_destination_is_skipped(self):
        taken = dest("2020_05_01-0001.jpg")
        entries = [
            FileEntry("a.jpg", ts(2020, 5, 1, 8)),
            FileEntry("b.jpg", ts(2020, 5, 1, 9)),
        ]
        outcomes = plan(entries, exists=lambda path: path == taken)

        assert outcomes[0].skip_reason is SkipReason.DESTINATION_EXISTS
        assert outcomes[0].destination == taken
        # the skipped file still used up number 1
        assert outcomes[1].directive.destination == dest("2020_05_01-0002.jpg")

    def test_state_chains_across_skipped_entries(self):
        taken = dest("2020_05_01-0001.jpg")
        entries = [
            FileEntry("a.jpg", ts(2020, 5, 1, 8)),
            FileEntry("b.jpg", ts(2020, 5, 1, 8)),
            FileEntry("c.jpg", ts(2020, 5, 1, 8)),
        ]
        outcomes = plan(entries, exists=lambda path: path == taken)
        assert [o.skip_reason for o in outcomes] == [SkipReason.DESTINATION_EXISTS] * 3
        assert {o.destination for o in outcomes} == {taken}

    def test_extension_case_is_preserved(self):
        outcome = plan([FileEntry("IMG_0001.JPG", ts(2020, 5, 1))])[0]
        assert outcome.directive.destination == dest("2020_05_01-0001.JPG")

    def test_no_extension_between_equal_timestamps_still_collides(self):
        entries = [
            FileEntry("a.jpg", ts(2020, 5, 1, 10)),
            FileEntry("b", ts(2020, 5, 1, 10)),
            FileEntry("c.jpg", ts(2020, 5, 1, 10)),
        ]
        outcomes = plan(entries)

        assert outcomes[1].skip_reason is SkipReason.NO_EXTENSION
        assert outcomes[2].counter == 1
        assert outcomes[2].skip_reason is SkipReason.DESTINATION_EXISTS
        assert outcomes[2].destination == dest("2020_05_01-0001.jpg")

    def test_extension_case_does_not_avoid_a_collision(self):
        entries = [
            FileEntry("a.jpg", ts(2020, 5, 1)),
            FileEntry("b.JPG", ts(2020, 5, 1)),
        ]
        outcomes = plan(entries)
        assert outcomes[0].directive.destination == dest("2020_05_01-0001.jpg")
        assert outcomes[1].directive is None
        assert outcomes[1].skip_reason is SkipReason.DESTINATION_EXISTS
        assert outcomes[1].destination == dest("2020_05_01-0001.JPG")

    def test_rerun_gives_identical_outcomes(self):
        entries = [
            FileEntry("a.jpg", ts(2020, 5, 1, 10)),
            FileEntry("b.jpg", ts(2020, 5, 1, 10)),
            FileEntry("c", ts(2020, 5, 1, 11)),
            FileEntry("d.jpg", ts(2020, 5, 2, 9)),
        ]
        taken = dest("2020_05_02-0001.jpg")
        assert plan(entries, exists=lambda p: p == taken) == plan(entries, exists=lambda p: p == taken)

    def test_is_lazy(self):
        checked = []

        def exists(path):
            checked.append(path)
            return False

        outcomes = plan_renames([FileEntry("a.jpg", ts(2020, 5, 1))], DEST, exists=exists)
        assert checked == []
        next(outcomes)
        assert checked == [dest("2020_05_01-0001.jpg")]

    def test_empty_input(self):
        assert plan([]) == []


class TestSortEntries:
    def test_sorts_chronologically(self):
        entries = [
            FileEntry("late.jpg", ts(2021, 1, 1)),
            FileEntry("early.jpg", ts(2019, 1, 1)),
            FileEntry("mid.jpg", ts(2020, 1, 1)),
        ]
        assert [e.path for e in sort_entries(entries)] == ["early.jpg", "mid.jpg", "late.jpg"]

    def test_equal_timestamps_keep_input_order(self):
        entries = [
            FileEntry("b.jpg", ts(2020, 5, 1, 10, offset=60)),
            FileEntry("a.jpg", ts(2020, 5, 1, 10)),
            FileEntry("c.jpg", ts(2020, 5, 1, 9)),
            FileEntry("d.jpg", ts(2020, 5, 1, 10, offset=-60)),
        ]
        assert [e.path for e in sort_entries(entries)] == ["c.jpg", "b.jpg", "a.jpg", "d.jpg"]
