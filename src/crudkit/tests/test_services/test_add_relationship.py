import logging

import pytest
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import OperationalError

from crudkit.exceptions.base import InvalidArgumentError, InvalidFieldError, SaveFailedError
from crudkit.tests.test_fixtures.models import Part, Widget
from crudkit.tests.test_fixtures.service_fixtures import logged


@pytest.mark.asyncio
class TestCRUDServiceAddRelationship:

    async def test_append_to_collection(self, crud_service, create_widget, db_session):
        """
        Behavior:
                - Retrieve a widget (parts not loaded), add a new Part through "parts".
                - The part is saved, linked to the widget, and returned.

        Importance:
                - The collection is loaded explicitly before appending, since an async
                  session cannot lazy-load it.
        """
        await create_widget(id="w1", name="test")
        db_session.expunge_all()
        widget = await crud_service.retrieve(Widget, "w1")
        assert "parts" in sa_inspect(widget).unloaded

        part = await crud_service.add_relationship(widget, Part(label="bolt"), "parts")

        assert sa_inspect(part).persistent
        assert part.widget_id == "w1"
        assert part.id is not None

        db_session.expunge_all()
        stored = await crud_service.retrieve(Widget, "w1", relationships=["parts"])
        assert [p.label for p in stored.parts] == ["bolt"]

    async def test_append_keeps_existing_members(self, crud_service, widget_with_parts, db_session):
        db_session.expunge_all()
        widget = await crud_service.retrieve(Widget, widget_with_parts.id)

        await crud_service.add_relationship(widget, Part(label="washer"), "parts")

        db_session.expunge_all()
        stored = await crud_service.retrieve(Widget, widget_with_parts.id, relationships=["parts"])
        assert sorted(p.label for p in stored.parts) == ["bolt", "nut", "washer"]

    async def test_assign_scalar_relationship(self, crud_service, create_widget, db_session):
        widget = await create_widget(id="w1", name="test")
        part = Part(label="loose")
        db_session.add(part)
        await db_session.flush()

        result = await crud_service.add_relationship(part, widget, "widget")

        assert result is widget
        assert part.widget_id == "w1"

    async def test_transient_owner_is_saved_too(self, crud_service):
        widget = Widget(id="new", name="fresh")

        part = await crud_service.add_relationship(widget, Part(label="bolt"), "parts")

        assert sa_inspect(widget).persistent
        assert part.widget_id == "new"

    async def test_unknown_relationship(self, crud_service, create_widget):
        widget = await create_widget(id="w1", name="test")

        with pytest.raises(InvalidFieldError) as exc_info:
            await crud_service.add_relationship(widget, Part(label="bolt"), "components")

        assert exc_info.value.fields == ["components"]

    async def test_requires_instance(self, crud_service):
        with pytest.raises(InvalidArgumentError):
            await crud_service.add_relationship(Widget, Part(label="bolt"), "parts")

    async def test_storage_fault_raises_save_failed(self, crud_service, create_widget, monkeypatch, caplog):
        caplog.set_level(logging.INFO, logger="crudkit")
        widget = await create_widget(id="w1", name="test")

        async def failing_flush(*args, **kwargs):
            raise OperationalError("INSERT INTO parts", {}, Exception("database is locked"))

        monkeypatch.setattr(crud_service.db, "flush", failing_flush)

        with pytest.raises(SaveFailedError) as exc_info:
            await crud_service.add_relationship(widget, Part(label="bolt"), "parts")

        assert isinstance(exc_info.value.__cause__, OperationalError)

        records = logged(
            caplog, "Widget with id w1 could not be updated in CRUDService.add_relationship", logging.ERROR
        )
        assert len(records) == 1
        assert records[0].context["relationship"] == "parts"
