"""
Tests for bulk import and autocomplete.
"""

import uuid

import pytest

from shared.config.settings import get_settings
from shared.utils.exceptions import DuplicateEntityError, ValidationError


class TestBulkImport:
    def test_created_at_strictly_increasing_in_input_order(self, repo):
        rows = repo.bulk_import([{"item": "a"}, {"item": "b"}, {"item": "c"}])

        assert [row.item for row in rows] == ["a", "b", "c"]
        stamps = [row.created_at for row in rows]
        assert stamps[0] < stamps[1] < stamps[2]

    def test_spacing_follows_settings(self, repo):
        first, second = repo.bulk_import([{"item": "a"}, {"item": "b"}])
        step_ms = get_settings().bulk_import_step_ms
        assert (second.created_at - first.created_at).total_seconds() * 1000 == pytest.approx(step_ms)

    def test_order_survives_default_sort(self, repo):
        repo.bulk_import([{"item": name} for name in ("x", "y", "z")])
        page = repo.find_all({}, sort_field="createdAt", sort_direction="asc")
        assert [row.item for row in page.rows] == ["x", "y", "z"]

    def test_defaults_and_actor(self, repo, actor_id):
        (row,) = repo.bulk_import([{"item": "rice", "importHash": "h-1"}], actor_id=actor_id)

        assert row.quantity is None
        assert row.location is None
        assert row.import_hash == "h-1"
        assert row.active is True
        assert row.created_by_id == actor_id
        assert row.updated_by_id == actor_id

    def test_does_not_bind_users(self, repo, seed_donor):
        (row,) = repo.bulk_import([{"item": "rice", "user": seed_donor.id}])
        assert row.user is None
        assert row.user_id is None

    def test_keeps_caller_ids(self, repo):
        donation_id = uuid.uuid4()
        (row,) = repo.bulk_import([{"id": str(donation_id), "item": "rice"}])
        assert row.id == donation_id

    def test_empty_batch(self, repo):
        assert repo.bulk_import([]) == []

    def test_invalid_item_inserts_nothing(self, repo):
        with pytest.raises(ValidationError):
            repo.bulk_import([{"item": "ok"}, {"item": "bad", "quantity": "lots"}])
        assert repo.count() == 0

    def test_duplicate_import_hash_inserts_nothing(self, repo):
        with pytest.raises(DuplicateEntityError):
            repo.bulk_import([
                {"item": "a", "importHash": "same"},
                {"item": "b", "importHash": "same"},
            ])
        assert repo.count() == 0


class TestAutocomplete:
    @pytest.fixture
    def catalogue(self, repo):
        return {
            name: repo.create({"item": name})
            for name in ("rice", "rim", "bread", "Rice flour")
        }

    def test_substring_ordered_by_label(self, repo, catalogue):
        options = repo.find_all_autocomplete("ri", 5)
        assert [o.label for o in options] == ["Rice flour", "rice", "rim"]
        assert options[1].id == catalogue["rice"].id

    def test_spec_example(self, repo):
        rice = repo.create({"item": "rice"})
        rim = repo.create({"item": "rim"})
        repo.create({"item": "bread"})

        options = repo.find_all_autocomplete("ri", 5)

        assert [(o.id, o.label) for o in options] == [(rice.id, "rice"), (rim.id, "rim")]

    def test_limit(self, repo, catalogue):
        assert len(repo.find_all_autocomplete("ri", 2)) == 2

    def test_empty_query_matches_all(self, repo, catalogue):
        labels = [o.label for o in repo.find_all_autocomplete("", 10)]
        assert labels == ["Rice flour", "bread", "rice", "rim"]

    def test_none_query_uses_default_limit(self, repo, catalogue):
        assert len(repo.find_all_autocomplete(None)) == 4

    def test_matches_by_id(self, repo, catalogue):
        bread = catalogue["bread"]
        options = repo.find_all_autocomplete(str(bread.id).upper(), 5)
        assert [o.id for o in options] == [bread.id]

    def test_non_identifier_query_does_not_fail(self, repo, catalogue):
        assert repo.find_all_autocomplete("zzz", 5) == []

    def test_long_query_matches_whole_term(self, repo):
        long_item = repo.create({"item": "a" * 100 + "XYZ"})

        assert repo.find_all_autocomplete("a" * 100 + "QQQ", 5) == []
        assert [o.id for o in repo.find_all_autocomplete("a" * 100 + "xyz", 5)] == [long_item.id]
