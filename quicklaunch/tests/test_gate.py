"""Tests for the commit gate and query state."""

from quicklaunch.daemon.gate import CommitGate, PresentedResults, QueryState, QueryTicket
from quicklaunch.daemon.models import DirectPathResult, Source


class TestQueryState:
    """Generation and text bookkeeping."""

    def test_advance_bumps_generation(self):
        state = QueryState()
        first = state.advance("a")
        second = state.advance("ab")

        assert first.generation == 1
        assert second.generation == 2
        assert state.text == "ab"

    def test_ticket_for_current_text_is_current(self):
        state = QueryState()
        state.advance("docs ")

        assert state.is_current(state.ticket("docs"))
        assert state.is_current(state.ticket())

    def test_ticket_with_other_text_is_stale(self):
        state = QueryState()
        state.advance("docs")

        assert not state.is_current(state.ticket("downloads"))

    def test_retyped_identical_text_rejects_older_ticket(self):
        state = QueryState()
        original = state.advance("report")
        state.advance("repo")
        retyped = state.advance("report")

        assert original.text == retyped.text
        assert not state.is_current(original)
        assert state.is_current(retyped)


class TestCommitGate:
    """Only results for the live query become visible."""

    def setup_method(self):
        self.state = QueryState()
        self.presented = PresentedResults()
        self.gate = CommitGate(self.state)
        self.setter = self.presented.setter(Source.FOLDERS)

    def test_commit_current(self):
        ticket = self.state.advance("dow")

        assert self.gate.commit(ticket, self.setter, ["Downloads"], source=Source.FOLDERS)
        assert self.presented.get(Source.FOLDERS) == ["Downloads"]
        assert self.presented.generation_of(Source.FOLDERS) == ticket.generation
        assert self.gate.committed == 1

    def test_stale_commit_is_dropped_silently(self):
        stale = self.state.advance("dow")
        self.state.advance("doc")

        assert not self.gate.commit(stale, self.setter, ["Downloads"])
        assert self.presented.get(Source.FOLDERS) == []
        assert self.gate.discarded == 1

    def test_whitespace_only_difference_still_commits(self):
        self.state.advance("  dow  ")
        ticket = QueryTicket(text="dow", generation=self.state.generation)

        assert self.gate.commit(ticket, self.setter, ["Downloads"])

    def test_sources_update_independently(self):
        ticket = self.state.advance("x")
        self.gate.commit(ticket, self.presented.setter(Source.MEMOS), ["memo"])

        assert self.presented.get(Source.MEMOS) == ["memo"]
        assert self.presented.get(Source.APPLICATIONS) == []


def test_presented_defaults():
    presented = PresentedResults()

    assert presented.get(Source.DIRECT_PATH) == DirectPathResult.absent()
    snapshot = presented.snapshot()
    assert set(snapshot) == {source.value for source in Source}
