"""Tests for the template catalog."""

from decimal import Decimal

import pytest

from fintrack.models import DayOfWeek, RecordKind
from fintrack.validation import ValidationError


class TestPredefinedTemplates:

    async def test_listed_in_weekday_order(self, templates):
        await templates.add_predefined("Groceries", "60", "Sunday", False)
        await templates.add_predefined("Paycheck", "900", "Friday", True)
        await templates.add_predefined("Gym", "30", "Monday", False)

        listed = await templates.list_predefined()
        assert [t.day_of_week for t in listed] == [
            DayOfWeek.MONDAY, DayOfWeek.FRIDAY, DayOfWeek.SUNDAY,
        ]
        assert [t.description for t in await templates.list_predefined("Friday")] == ["Paycheck"]

    async def test_edit_and_delete(self, templates, store):
        template = await templates.add_predefined("Gym", "30", "Monday", False)

        await templates.edit_predefined(template, "Gym", "35", "Tuesday", False)
        assert store.durable_records(RecordKind.PREDEFINED_TRANSACTION)[0].amount == Decimal("35")

        await templates.delete_predefined(template)
        assert await templates.list_predefined() == []
        assert store.durable_records(RecordKind.PREDEFINED_TRANSACTION) == []

    async def test_rejects_invalid_template(self, templates):
        with pytest.raises(ValidationError):
            await templates.add_predefined("Gym", "0", "Monday", False)
        assert await templates.list_predefined() == []

    async def test_templates_do_not_touch_ledger(self, templates, ledger):
        await templates.add_predefined("Paycheck", "900", "Friday", True)
        assert ledger.balance == Decimal("0")


class TestQuickAddTemplates:

    async def test_listed_by_description(self, templates):
        await templates.add_quick_add("tea", "3", False)
        await templates.add_quick_add("Bonus", "50", True)
        await templates.add_quick_add("Coffee", "4.5", False)

        assert [t.description for t in await templates.list_quick_add()] == ["Bonus", "Coffee", "tea"]
        assert [t.description for t in await templates.list_quick_add(is_income=False)] == ["Coffee", "tea"]

    async def test_edit_and_delete(self, templates):
        template = await templates.add_quick_add("Coffee", "4.5", False)

        await templates.edit_quick_add(template, "Latte", "5.25", False)
        assert (await templates.list_quick_add())[0].description == "Latte"

        await templates.delete_quick_add(template)
        assert await templates.list_quick_add() == []

    async def test_rejects_blank_description(self, templates):
        with pytest.raises(ValidationError):
            await templates.add_quick_add("  ", "4.5", False)
