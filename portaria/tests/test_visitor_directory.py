# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for the visitor directory.
"""

import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock
from pymongo.errors import AutoReconnect

from portaria.domain.admission import UNKNOWN_OPERATOR
from portaria.domain.errors import NotFound, ValidationError
from portaria.models.entities import Operator, VisitorDraft
from portaria.services.visitors import VisitorDirectory

CHECK_IN = datetime(2024, 5, 6, 8, 0, 0, tzinfo=timezone.utc)


def make_draft(cpf="04017817807", name="John Doe", room="Sala Rubi"):
    return VisitorDraft(
        name=name,
        cpf=cpf,
        email="john@example.com",
        room=room,
        check_in_time=CHECK_IN,
        registered_by="Admin User",
        registered_by_id="user123"
    )


class TestInsert:

    def test_insert_assigns_id_and_timestamps(self, directory):
        visitor = directory.insert(make_draft())

        assert visitor.id
        assert visitor.status == "in_building"
        assert visitor.created_at == visitor.updated_at
        assert visitor.check_in_time == "2024-05-06T08:00:00+00:00"
        assert visitor.check_out_time is None
        assert visitor.checked_in_by == "Admin User"
        assert visitor.checked_in_by_id == "user123"

    def test_insert_stores_native_datetimes(self, directory, store):
        visitor = directory.insert(make_draft())

        stored = store.find_one_by_id("visitors", visitor.id)
        assert isinstance(stored["createdAt"], datetime)
        assert isinstance(stored["checkInTime"], datetime)
        assert stored["checkOutTime"] is None

    def test_store_failure_propagates(self):
        store = MagicMock()
        store.create.side_effect = AutoReconnect("connection reset")
        directory = VisitorDirectory(store)

        with pytest.raises(AutoReconnect):
            directory.insert(make_draft())


class TestFindMostRecent:

    def test_unknown_cpf(self, directory):
        assert directory.find_most_recent_by_identification("04017817807") is None

    def test_empty_cpf(self, directory):
        assert directory.find_most_recent_by_identification("") is None

    def test_formatted_input_matches(self, directory):
        created = directory.insert(make_draft())

        found = directory.find_most_recent_by_identification("040.178.178-07")
        assert found.id == created.id

    def test_latest_record_wins(self, directory):
        first = directory.insert(make_draft(room="Sala Rubi"))
        directory.mark_checked_out(first.id, None)
        second = directory.insert(make_draft(room="Sala Safira"))

        found = directory.find_most_recent_by_identification("04017817807")
        assert found.id == second.id
        assert found.room == "Sala Safira"

    def test_latest_record_wins_regardless_of_store_order(self):
        older = datetime(2024, 1, 1, tzinfo=timezone.utc)
        newer = datetime(2024, 2, 1, tzinfo=timezone.utc)
        base = make_draft().to_document()
        store = MagicMock()
        store.find.return_value = [
            dict(base, id="new", createdAt=newer, updatedAt=newer),
            dict(base, id="old", createdAt=older, updatedAt=older),
        ][::-1]
        directory = VisitorDirectory(store)

        assert directory.find_most_recent_by_identification("04017817807").id == "new"


class TestListing:

    def test_list_in_room_filters_by_status(self, directory):
        inside = directory.insert(make_draft(cpf="04017817807", room="Sala Rubi"))
        gone = directory.insert(make_draft(cpf="52998224725", room="Sala Rubi"))
        directory.insert(make_draft(cpf="11144477735", room="Sala Safira"))
        directory.mark_checked_out(gone.id, None)

        in_room = directory.list_in_room("Sala Rubi")
        assert [visitor.id for visitor in in_room] == [inside.id]

        left = directory.list_in_room("Sala Rubi", "checked_out")
        assert [visitor.id for visitor in left] == [gone.id]

    def test_count_in_room(self, directory):
        directory.insert(make_draft(cpf="04017817807", room="Sala Rubi"))
        directory.insert(make_draft(cpf="52998224725", room="Sala Rubi"))

        assert directory.count_in_room("Sala Rubi") == 2
        assert directory.count_in_room("Sala Safira") == 0

    def test_list_filters_and_sorts(self, directory):
        first = directory.insert(make_draft(cpf="04017817807"))
        second = directory.insert(make_draft(cpf="52998224725"))
        third = directory.insert(make_draft(cpf="11144477735"))
        directory.mark_checked_out(second.id, None)

        assert [v.id for v in directory.list()] == [third.id, second.id, first.id]
        assert [v.id for v in directory.list("all")] == [third.id, second.id, first.id]
        assert [v.id for v in directory.list("in_building")] == [third.id, first.id]
        assert [v.id for v in directory.list("checked_out")] == [second.id]

    def test_list_sorts_unordered_store_results(self):
        base = make_draft().to_document()
        dates = [datetime(2024, 1, day, tzinfo=timezone.utc) for day in (3, 1, 2)]
        store = MagicMock()
        store.find.return_value = [
            dict(base, id=f"v{d.day}", createdAt=d, updatedAt=d) for d in dates
        ]
        directory = VisitorDirectory(store)

        assert [v.id for v in directory.list("in_building")] == ["v3", "v2", "v1"]

    def test_list_rejects_unknown_filter(self, directory):
        with pytest.raises(ValidationError):
            directory.list("everyone")


class TestMarkCheckedOut:

    def test_sets_checkout_fields(self, directory):
        visitor = directory.insert(make_draft())
        operator = Operator(id="op9", name="Recepção")
        now = datetime(2024, 5, 6, 18, 30, tzinfo=timezone.utc)

        directory.mark_checked_out(visitor.id, operator, now)

        updated = directory.get(visitor.id)
        assert updated.status == "checked_out"
        assert updated.check_out_time == "2024-05-06T18:30:00+00:00"
        assert updated.checked_out_by == "Recepção"
        assert updated.checked_out_by_id == "op9"
        assert updated.updated_at == "2024-05-06T18:30:00+00:00"
        assert updated.created_at == visitor.created_at

    def test_missing_operator_recorded_as_unknown(self, directory):
        visitor = directory.insert(make_draft())

        directory.mark_checked_out(visitor.id, None)

        updated = directory.get(visitor.id)
        assert updated.checked_out_by == UNKNOWN_OPERATOR == "Unknown"
        assert updated.checked_out_by_id is None

    def test_unknown_id_raises_not_found(self, directory):
        with pytest.raises(NotFound):
            directory.mark_checked_out("665f1c2e9b1e8a0012345678", None)

    def test_get_unknown_id(self, directory):
        assert directory.get("665f1c2e9b1e8a0012345678") is None
