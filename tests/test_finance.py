from datetime import date, time
from decimal import Decimal

import pytest

from lash_studio.core.finance import (
    FinanceService,
    chart_series,
    compute_transactions,
    filter_by_period,
    period_bounds,
    receivables,
    settle_note,
    summarize,
)
from lash_studio.models.appointment import GUEST_CLIENT_LABEL
from lash_studio.models.client import Client
from lash_studio.models.finance import Period, TransactionStatus

from conftest import make_appointment, save_appointment, save_client


# 2024-05-15 é uma quarta-feira
REFERENCE = date(2024, 5, 15)


def _tx(*appointments, clients=()):
    return compute_transactions(appointments, clients)


# =========================
# TRANSAÇÕES
# =========================

def test_paid_appointment_inflow_is_full_price():
    [t] = _tx(make_appointment(200, 200))
    assert t.inflow == Decimal("200")
    assert t.receivable == Decimal("0")
    assert t.status == TransactionStatus.PAID


def test_partial_appointment_splits_inflow_and_receivable():
    [t] = _tx(make_appointment(200, 50))
    assert t.inflow == Decimal("50")
    assert t.receivable == Decimal("150")
    assert t.status == TransactionStatus.PENDING


def test_inflow_plus_receivable_equals_total():
    txs = _tx(make_appointment(200, 0), make_appointment("99.90", "10.10"), make_appointment(80, 80))
    for t in txs:
        assert t.inflow + t.receivable == t.total
        assert t.receivable >= 0


def test_unsaved_appointment_still_becomes_a_transaction():
    [t] = _tx(make_appointment(120, 20))
    assert t.id is None
    assert t.receivable == Decimal("100")


def test_zero_price_counts_as_paid():
    [t] = _tx(make_appointment(0))
    assert t.status == TransactionStatus.PAID
    assert t.inflow == Decimal("0")


def test_client_name_resolution_and_guest_label():
    client = Client(id="c1", name="Ana Souza")
    txs = _tx(make_appointment(100, client_id="c1"), make_appointment(100, client_id="missing"),
              clients=[client])
    assert txs[0].client_name == "Ana Souza"
    assert txs[1].client_name == GUEST_CLIENT_LABEL


def test_transactions_keep_input_order():
    appts = [make_appointment(10, id="a"), make_appointment(20, id="b"), make_appointment(30, id="c")]
    assert [t.id for t in _tx(*appts)] == ["a", "b", "c"]


# =========================
# PERÍODOS
# =========================

def test_week_bounds_run_sunday_to_saturday():
    assert period_bounds(Period.WEEK, REFERENCE) == (date(2024, 5, 12), date(2024, 5, 18))
    # domingo é o início da própria semana
    assert period_bounds(Period.WEEK, date(2024, 5, 12)) == (date(2024, 5, 12), date(2024, 5, 18))


def test_month_and_year_bounds():
    assert period_bounds(Period.MONTH, date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert period_bounds(Period.YEAR, REFERENCE) == (date(2024, 1, 1), date(2024, 12, 31))
    assert period_bounds(Period.DAY, REFERENCE) == (REFERENCE, REFERENCE)


def test_filter_by_period():
    txs = _tx(
        make_appointment(10, day=date(2024, 5, 15)),
        make_appointment(20, day=date(2024, 5, 18)),
        make_appointment(30, day=date(2024, 5, 19)),
        make_appointment(40, day=date(2023, 5, 15)),
    )
    assert len(filter_by_period(txs, Period.DAY, REFERENCE)) == 1
    assert len(filter_by_period(txs, Period.WEEK, REFERENCE)) == 2
    assert len(filter_by_period(txs, Period.MONTH, REFERENCE)) == 3
    assert len(filter_by_period(txs, Period.YEAR, REFERENCE)) == 3


# =========================
# MÉTRICAS
# =========================

def test_summarize_empty_is_all_zero():
    metrics = summarize([])
    assert metrics.total_gross == 0
    assert metrics.total_inflow == 0
    assert metrics.total_receivable == 0
    assert metrics.ticket_average == 0
    assert metrics.count == 0


def test_summarize_totals_and_ticket_average():
    metrics = summarize(_tx(make_appointment(100, 100), make_appointment(50, 20), make_appointment("0.01")))
    assert metrics.total_gross == Decimal("150.01")
    assert metrics.total_inflow == Decimal("120")
    assert metrics.total_receivable == Decimal("30.01")
    assert metrics.ticket_average == Decimal("50.00")
    assert metrics.count == 3


def test_receivable_total_ignores_period_filter():
    txs = _tx(
        make_appointment(100, 40, day=REFERENCE),
        make_appointment(300, 0, day=date(2023, 1, 10)),
    )
    metrics = summarize(txs, Period.DAY, REFERENCE)
    assert metrics.total_gross == Decimal("100")
    assert metrics.count == 1
    assert metrics.total_receivable == Decimal("360")


def test_receivables_most_recent_first():
    txs = _tx(
        make_appointment(100, 0, day=date(2024, 5, 1), id="old"),
        make_appointment(100, 100, day=date(2024, 5, 20), id="paid"),
        make_appointment(100, 10, day=date(2024, 5, 10), at=time(9, 0), id="mid-early"),
        make_appointment(100, 10, day=date(2024, 5, 10), at=time(16, 0), id="mid-late"),
    )
    assert [t.id for t in receivables(txs)] == ["mid-late", "mid-early", "old"]


# =========================
# GRÁFICO
# =========================

def test_week_chart_labels_and_sums():
    txs = _tx(
        make_appointment(100, 100, day=date(2024, 5, 12)),
        make_appointment(80, 30, day=date(2024, 5, 15)),
        make_appointment(70, 70, day=date(2024, 5, 15)),
        make_appointment(999, 999, day=date(2024, 5, 25)),
    )
    chart = chart_series(txs, Period.WEEK, REFERENCE)
    assert [p.label for p in chart] == ["Dom", "Seg", "Ter", "Qua", "Qui", "Sex", "Sáb"]
    assert chart[0].value == Decimal("100")
    assert chart[3].value == Decimal("100")
    assert sum(p.value for p in chart) == summarize(txs, Period.WEEK, REFERENCE).total_inflow


def test_day_chart_buckets_by_shift():
    txs = _tx(
        make_appointment(10, 10, at=time(8, 0)),
        make_appointment(20, 20, at=time(12, 0)),
        make_appointment(40, 40, at=time(18, 30)),
    )
    chart = chart_series(txs, Period.DAY, REFERENCE)
    assert [(p.label, p.value) for p in chart] == [
        ("Manhã", Decimal("10")),
        ("Tarde", Decimal("20")),
        ("Noite", Decimal("40")),
    ]


@pytest.mark.parametrize("period, size", [(Period.MONTH, 5), (Period.YEAR, 12)])
def test_chart_sizes(period, size):
    txs = _tx(make_appointment(10, 10, day=date(2024, 5, 31)))
    chart = chart_series(txs, period, REFERENCE)
    assert len(chart) == size
    assert sum(p.value for p in chart) == Decimal("10")


# =========================
# NOTA DE QUITAÇÃO
# =========================

def test_settle_note_replaces_balance_phrase():
    notes = "Pagamento via PIX. Sinal de R$ 50.00 pago. Valor restante: R$ 150.00."
    assert settle_note(notes) == "Pagamento via PIX. Sinal de R$ 50.00 pago. Pagamento integral recebido."


def test_settle_note_appends_when_missing_and_is_stable():
    once = settle_note("Cliente pediu volume leve.")
    assert once == "Cliente pediu volume leve. Pagamento integral recebido."
    assert settle_note(once) == once
    assert settle_note("") == "Pagamento integral recebido."


# =========================
# SERVIÇO
# =========================

def test_dashboard_uses_store(store):
    client = save_client(store)
    save_appointment(store, 200, 50, day=REFERENCE, client_id=client.id)
    save_appointment(store, 100, 100, day=date(2024, 5, 2))

    dashboard = FinanceService(store).dashboard(Period.MONTH, REFERENCE)
    assert dashboard.start == date(2024, 5, 1)
    assert dashboard.end == date(2024, 5, 31)
    assert dashboard.metrics.total_gross == Decimal("300")
    assert dashboard.metrics.total_inflow == Decimal("150")
    assert dashboard.metrics.total_receivable == Decimal("150")


def test_ledger_most_recent_first_and_filtered(store):
    save_appointment(store, 10, day=date(2024, 5, 1), id="a")
    save_appointment(store, 10, day=date(2024, 5, 20), id="b")
    save_appointment(store, 10, day=date(2023, 5, 20), id="c")

    service = FinanceService(store)
    assert [t.id for t in service.ledger()] == ["b", "a", "c"]
    assert [t.id for t in service.ledger(Period.YEAR, REFERENCE)] == ["b", "a"]


def test_receivables_ledger_total(store):
    save_appointment(store, 100, 30)
    save_appointment(store, 50, 50)
    ledger = FinanceService(store).receivables_ledger()
    assert ledger.total == Decimal("70")
    assert len(ledger.items) == 1
