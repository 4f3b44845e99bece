from datetime import date

import pytest

from conftest import make_tx
from repositories import TransactionRepository
from services.common import Month
from services.insights import FALLBACK_PREFIX, OllamaInsights
from services.transactions import TransactionService, percent_change


@pytest.fixture
def service(db):
    return TransactionService()


@pytest.fixture
def seeded(service):
    rows = [
        make_tx(date(2024, 2, 14), 80.0, "Dining", "Chez Panisse", "valentine"),
        make_tx(date(2024, 3, 5), 50.0, "Food", "Whole Foods", "weekly shop"),
        make_tx(date(2024, 3, 10), 150.0, "Rent", "Landlord", None),
        make_tx(date(2024, 3, 31), 20.0, None, None, "cash"),
        make_tx(None, 5.0, "Food", "Bodega", "no receipt"),
        make_tx(date(2024, 4, 1), 999.0, "Rent", "Landlord", None),
    ]
    return [service.create_transaction(tx) for tx in rows]


def test_create_assigns_fresh_id_and_ignores_supplied_one(service):
    first = service.create_transaction(make_tx(date(2024, 3, 1), 1.0))
    supplied = make_tx(date(2024, 3, 2), 2.0)
    supplied.id = first.id
    second = service.create_transaction(supplied)

    assert first.id is not None
    assert second.id != first.id
    assert TransactionRepository.count() == 2


def test_get_and_delete_report_not_found(service, seeded):
    target = seeded[1]
    assert service.get_transaction(target.id).merchant == "Whole Foods"

    assert service.delete_transaction(target.id) is True
    assert service.get_transaction(target.id) is None
    assert service.delete_transaction(target.id) is False


def test_list_keeps_store_order_and_applies_filters(service, seeded):
    ids = [tx.id for tx in service.list_transactions()]
    assert ids == sorted(ids) and len(ids) == 6

    assert [tx.merchant for tx in service.list_transactions(q="FOOD")] == ["Whole Foods", "Bodega"]
    assert [tx.merchant for tx in service.list_transactions(q="food", category="rent")] == []

    march = service.list_transactions(date_from=date(2024, 3, 1), date_to=date(2024, 3, 31))
    assert [tx.amount for tx in march] == [50.0, 150.0, 20.0]


def test_monthly_summary_groups_in_first_encountered_order(service, seeded):
    summary = service.monthly_summary(Month(2024, 3))
    assert summary.total == 220.0
    assert list(summary.by_category.items()) == [("Food", 50.0), ("Rent", 150.0), ("Uncategorized", 20.0)]
    assert summary.to_dict() == {
        "month": "2024-03",
        "total": 220.0,
        "byCategory": {"Food": 50.0, "Rent": 150.0, "Uncategorized": 20.0},
    }


def test_monthly_summary_categories_add_up_to_total(service):
    for amount, category in [(0.1, "A"), (0.2, "B"), (10.333, "A"), (None, "C"), (-4.0, "Salary")]:
        service.create_transaction(make_tx(date(2024, 5, 3), amount, category))
    summary = service.monthly_summary(Month(2024, 5))
    assert sum(summary.by_category.values()) == pytest.approx(summary.total, abs=0.01)


def test_monthly_summary_empty_month(service, seeded):
    summary = service.monthly_summary(Month(2023, 1))
    assert summary.total == 0
    assert summary.by_category == {}


def test_monthly_insight_compares_with_previous_month(service, seeded):
    text = service.monthly_insight(Month(2024, 3))
    assert text == "2024-03 total $220.00 (+175.0% vs 2024-02). Top category: Rent. Biggest merchant: Landlord."


def test_monthly_insight_empty_month(service, seeded):
    assert service.monthly_insight(Month(2025, 1)) == "No spending recorded for 2025-01."


def test_monthly_insight_uses_injected_strategy(db):
    class Broken:
        def generate(self, prompt):
            raise RuntimeError("offline")

    service = TransactionService(insights=OllamaInsights(Broken()))
    service.create_transaction(make_tx(date(2024, 3, 5), 50.0, "Food"))
    text = service.monthly_insight(Month(2024, 3))
    assert text == FALLBACK_PREFIX + "2024-03 total $50.00 (no prior data). Top category: Food. Biggest merchant: Unknown."


def test_duplicate_copies_fields_with_new_id_and_date(service, seeded):
    source = seeded[1]
    copy = service.duplicate_transaction(source.id, on_date=date(2024, 6, 1))

    assert copy.id != source.id
    assert copy.date == date(2024, 6, 1)
    assert (copy.merchant, copy.amount, copy.category, copy.notes) == (
        "Whole Foods", 50.0, "Food", "weekly shop"
    )
    assert service.duplicate_transaction(10_000) is None


def test_duplicate_defaults_to_today(service, seeded):
    assert service.duplicate_transaction(seeded[0].id).date == date.today()


def test_weekly_buckets_cover_the_month_and_skip_income(service):
    rows = [
        make_tx(date(2024, 2, 8), 20.0, "Dining"),
        make_tx(date(2024, 2, 9), -100.0, "Refund"),
        make_tx(date(2024, 2, 10), 3000.0, "Salary"),
        make_tx(date(2024, 2, 29), 7.5, "Dining"),
        make_tx(date(2024, 2, 1), None, "Dining"),
    ]
    for tx in rows:
        service.create_transaction(tx)

    buckets = service.weekly_buckets(Month(2024, 2))

    assert [b.label for b in buckets] == ["W1 (1-7)", "W2 (8-14)", "W3 (15-21)", "W4 (22-28)", "W5 (29-29)"]
    assert [b.expense for b in buckets] == [0.0, 20.0, 0.0, 0.0, 7.5]
    assert buckets[-1].to_dict() == {"label": "W5 (29-29)", "start": "2024-02-29", "end": "2024-02-29", "expense": 7.5}


def test_export_csv_has_header_and_filtered_rows(service, seeded):
    lines = service.export_csv(category="rent").splitlines()
    assert lines[0] == "id,date,merchant,amount,category,notes"
    assert len(lines) == 3
    assert lines[1] == f"{seeded[2].id},2024-03-10,Landlord,150.0,Rent,"


@pytest.fixture
def march_spending(service):
    rows = [
        make_tx(date(2024, 3, 2), 85.0, "Dining"),
        make_tx(date(2024, 3, 3), 30.0, "dining "),
        make_tx(date(2024, 3, 4), 40.0, "Groceries"),
        make_tx(date(2024, 3, 5), -500.0, "Rent"),
        make_tx(date(2024, 3, 6), 10.0, "Salary"),
        make_tx(date(2024, 3, 7), 12.0, None),
        make_tx(date(2024, 4, 1), 999.0, "Groceries"),
    ]
    return [service.create_transaction(tx) for tx in rows]


def test_budget_alerts_levels_and_order(service, march_spending):
    service.set_budget("Rent", 200)
    service.set_budget("Groceries", 50)
    service.set_budget("Dining", 100)
    service.set_budget("Uncategorized", 100)

    alerts = service.budget_alerts(Month(2024, 3), today=date(2024, 4, 15))

    assert [a.category for a in alerts] == ["Dining", "Groceries", "Uncategorized", "Rent"]
    assert [a.spent for a in alerts] == [115.0, 40.0, 12.0, 0.0]
    assert [a.level for a in alerts] == ["bad", "warn", "ok", "ok"]
    assert [a.pct for a in alerts] == [100, 80, 12, 0]


def test_budget_alert_percent_rounds_half_up(service, march_spending):
    service.set_budget("Groceries", 320)
    (alert,) = service.budget_alerts(Month(2024, 3), today=date(2024, 4, 1))
    assert alert.ratio == 0.125
    assert alert.pct == 13


def test_budget_pacing_follows_elapsed_days(service, march_spending):
    service.set_budget("Dining", 310)
    march = Month(2024, 3)

    (partway,) = service.budget_alerts(march, today=date(2024, 3, 10))
    assert partway.expected == 100.0
    assert partway.delta == 15.0
    assert partway.pace == "over"

    (finished,) = service.budget_alerts(march, today=date(2024, 5, 2))
    assert finished.expected == 310.0
    assert finished.pace == "under"

    (ahead,) = service.budget_alerts(march, today=date(2024, 2, 20))
    assert ahead.expected == 0.0
    assert ahead.pace == "over"


def test_budget_exactly_spent_is_on_pace_and_at_limit(service, march_spending):
    service.set_budget("Groceries", 40)
    (alert,) = service.budget_alerts(Month(2024, 3), today=date(2024, 4, 1))
    assert alert.pace == "on"
    assert alert.to_dict() == {
        "category": "Groceries",
        "limit": 40.0,
        "spent": 40.0,
        "ratio": 1.0,
        "level": "bad",
        "pct": 100,
        "expected": 40.0,
        "delta": 0.0,
        "pace": "on",
    }


def test_set_budget_replaces_case_insensitively(service):
    service.set_budget("dining", 50)
    service.set_budget(" Dining ", 75)

    (budget,) = service.list_budgets()
    assert budget.category == "Dining"
    assert budget.monthly_limit == 75.0

    assert service.remove_budget("DINING") is True
    assert service.remove_budget("dining") is False
    assert service.list_budgets() == []


@pytest.mark.parametrize("category, limit", [("", 10), ("   ", 10), ("Dining", 0), ("Dining", -5), ("Dining", float("nan"))])
def test_set_budget_rejects_blank_category_or_non_positive_limit(service, category, limit):
    with pytest.raises(ValueError):
        service.set_budget(category, limit)
    assert service.list_budgets() == []


def test_no_budgets_means_no_alerts(service, march_spending):
    assert service.budget_alerts(Month(2024, 3), today=date(2024, 3, 15)) == []


def test_month_comparison_against_previous_month(service):
    rows = [
        make_tx(date(2024, 2, 14), 80.0, "Dining"),
        make_tx(date(2024, 2, 25), -1000.0, "Salary"),
        make_tx(date(2024, 3, 5), 50.0, "Food"),
        make_tx(date(2024, 3, 10), 150.0, "Rent"),
        make_tx(date(2024, 3, 25), -1500.0, "Salary"),
        make_tx(date(2024, 3, 28), 20.0, "Interest"),
    ]
    for tx in rows:
        service.create_transaction(tx)

    comparison = service.month_comparison(Month(2024, 3))

    assert (comparison.current.income, comparison.current.expense, comparison.current.net) == (1520.0, 200.0, 1320.0)
    assert (comparison.previous.income, comparison.previous.expense, comparison.previous.net) == (1000.0, 80.0, 920.0)
    assert comparison.current.count == 4
    assert comparison.to_dict()["previousMonth"] == "2024-02"
    assert comparison.changes() == {
        "income": {"diff": 520.0, "pct": 52.0},
        "expense": {"diff": 120.0, "pct": 150.0},
        "net": {"diff": 400.0, "pct": 43.5},
    }


def test_month_comparison_without_prior_data_has_no_percentages(service):
    service.create_transaction(make_tx(date(2024, 3, 5), 50.0, "Food"))

    changes = service.month_comparison(Month(2024, 3)).changes()

    assert changes["expense"] == {"diff": 50.0, "pct": None}
    assert changes["income"] == {"diff": 0.0, "pct": None}
    assert changes["net"] == {"diff": -50.0, "pct": None}


def test_percent_change_is_relative_to_previous_magnitude():
    assert percent_change(150.0, 100.0) == 50.0
    assert percent_change(-50.0, -100.0) == 50.0
    assert percent_change(5.0, 0.0) is None
