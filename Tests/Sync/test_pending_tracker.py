# test_pending_tracker.py
#
# Imports
from campaigner_tui.Constants import ENTITY_CAMPAIGNS, ENTITY_CONVERSATIONS
from campaigner_tui.Sync.pending_tracker import PendingOperationTracker
#
########################################################################################################################
#
# Tests

def test_mark_is_idempotent():
    tracker = PendingOperationTracker()
    assert tracker.mark(ENTITY_CAMPAIGNS, 5) is True
    assert tracker.mark(ENTITY_CAMPAIGNS, 5) is False
    assert tracker.pending_ids(ENTITY_CAMPAIGNS) == frozenset({5})
    assert len(tracker) == 1


def test_types_are_independent():
    tracker = PendingOperationTracker()
    tracker.mark(ENTITY_CAMPAIGNS, 5)
    assert tracker.is_pending(ENTITY_CAMPAIGNS, 5)
    assert not tracker.is_pending(ENTITY_CONVERSATIONS, 5)


def test_unmark_and_clear():
    tracker = PendingOperationTracker()
    tracker.mark(ENTITY_CAMPAIGNS, 5)
    tracker.mark(ENTITY_CONVERSATIONS, 7)
    tracker.unmark(ENTITY_CAMPAIGNS, 5)
    tracker.unmark(ENTITY_CAMPAIGNS, 99)  # unknown ids are fine
    assert not tracker.is_pending(ENTITY_CAMPAIGNS, 5)
    tracker.clear()
    assert len(tracker) == 0


def test_pending_ids_is_a_snapshot():
    tracker = PendingOperationTracker()
    tracker.mark(ENTITY_CAMPAIGNS, 1)
    before = tracker.pending_ids(ENTITY_CAMPAIGNS)
    tracker.mark(ENTITY_CAMPAIGNS, 2)
    assert before == frozenset({1})

#
# End of test_pending_tracker.py
########################################################################################################################
