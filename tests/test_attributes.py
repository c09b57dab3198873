"""
Tests for the %status, @type and #tag extractors.
"""

import pytest

from natcal.attributes import (
    ItemStatus,
    ItemType,
    TagSet,
    extract_status,
    extract_tags,
    extract_type,
)


@pytest.mark.unit
class TestStatus:
    @pytest.mark.parametrize(
        "token, status",
        [
            ("%back", ItemStatus.BACKLOG),
            ("%backlog", ItemStatus.BACKLOG),
            ("%todo", ItemStatus.TODO),
            ("%t", ItemStatus.TODO),
            ("%doing", ItemStatus.IN_PROGRESS),
            ("%inprogress", ItemStatus.IN_PROGRESS),
            ("%i", ItemStatus.IN_PROGRESS),
            ("%done", ItemStatus.DONE),
            ("%D", ItemStatus.DONE),
        ],
    )
    def test_aliases(self, reference, token, status):
        assert extract_status(reference, f"Fly {token} home") == (status, "Fly home")

    def test_default(self, reference):
        assert extract_status(reference, "Fly home") == (ItemStatus.TODO, "Fly home")

    def test_unknown_word_stays(self, reference):
        assert extract_status(reference, "grow %weird") == (ItemStatus.TODO, "grow %weird")

    def test_percent_inside_word_is_not_a_token(self, reference):
        assert extract_status(reference, "save 50%done") == (ItemStatus.TODO, "save 50%done")

    def test_idempotent(self, reference):
        status, once = extract_status(reference, "%done write %weird report")
        again = extract_status(reference, once)
        assert status == ItemStatus.DONE
        assert again == (ItemStatus.TODO, once)

    def test_to_input(self):
        assert [s.to_input() for s in ItemStatus] == ["%backlog", "%todo", "%doing", "%done"]


@pytest.mark.unit
class TestType:
    @pytest.mark.parametrize(
        "token, item_type",
        [
            ("@event", ItemType.EVENT),
            ("@e", ItemType.EVENT),
            ("@block", ItemType.BLOCK),
            ("@b", ItemType.BLOCK),
            (".reminder", ItemType.REMINDER),
            ("@R", ItemType.REMINDER),
            ("@task", ItemType.TASK),
            (".t", ItemType.TASK),
        ],
    )
    def test_aliases(self, reference, token, item_type):
        assert extract_type(reference, f"{token} print") == (item_type, "print")

    def test_default(self, reference):
        assert extract_type(reference, "print") == (ItemType.EVENT, "print")

    def test_unknown_word_stays(self, reference):
        assert extract_type(reference, "work @home") == (ItemType.EVENT, "work @home")

    def test_email_is_not_a_token(self, reference):
        text = "mail bob@block.com"
        assert extract_type(reference, text) == (ItemType.EVENT, text)

    def test_only_task_may_be_unscheduled(self):
        assert [t for t in ItemType if not t.requires_date] == [ItemType.TASK]


@pytest.mark.unit
class TestTags:
    def test_order_and_duplicates(self, reference):
        tags, residual = extract_tags(reference, "#work meet #urgent #work today")
        assert list(tags) == ["work", "urgent"]
        assert residual == "meet today"

    def test_none(self, reference):
        tags, residual = extract_tags(reference, "meet today")
        assert len(tags) == 0
        assert residual == "meet today"

    def test_hash_inside_word(self, reference):
        tags, residual = extract_tags(reference, "issue a#1")
        assert not tags
        assert residual == "issue a#1"

    def test_idempotent(self, reference):
        _, once = extract_tags(reference, "#a b #c")
        assert extract_tags(reference, once) == (TagSet(), once)

    def test_renderings(self):
        tags = TagSet(("health", "home", "health"))
        assert tags.to_input() == "#health #home"
        assert tags.to_property() == "health,home"
        assert TagSet.from_property("health, home") == tags
