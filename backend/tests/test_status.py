"""Tests for rent status resolution and period helpers."""
from datetime import date, datetime
from decimal import Decimal

import pytest

from app.core.periods import due_date, iter_months, period_label
from app.core.status import is_transition_to_paid, resolve_status
from app.models.enums import StatutLoyer

DUE = date(2024, 3, 5)


class TestResolveStatus:
    def test_fully_paid(self):
        assert resolve_status(Decimal("1050"), Decimal("1050"), DUE, date(2024, 4, 1)) == StatutLoyer.PAYE

    def test_overpaid_is_paid(self):
        """Un trop-perçu reste PAYE."""
        assert resolve_status(Decimal("1050"), Decimal("1100"), DUE, DUE) == StatutLoyer.PAYE

    def test_partial_before_and_after_due_date(self):
        """PARTIEL l'emporte sur RETARD."""
        assert resolve_status(Decimal("1050"), Decimal("400"), DUE, date(2024, 3, 1)) == StatutLoyer.PARTIEL
        assert resolve_status(Decimal("1050"), Decimal("400"), DUE, date(2024, 6, 1)) == StatutLoyer.PARTIEL

    def test_unpaid_after_due_date_is_late(self):
        assert resolve_status(Decimal("1050"), Decimal("0"), DUE, date(2024, 3, 6)) == StatutLoyer.RETARD

    def test_due_date_itself_is_not_late(self):
        """Le jour de l'échéance, même en fin de journée, n'est pas en retard."""
        now = datetime(2024, 3, 5, 23, 59)
        assert resolve_status(Decimal("1050"), Decimal("0"), DUE, now) == StatutLoyer.EN_ATTENTE

    def test_unpaid_before_due_date(self):
        assert resolve_status(Decimal("1050"), Decimal("0"), DUE, date(2024, 3, 1)) == StatutLoyer.EN_ATTENTE

    def test_accepts_floats(self):
        assert resolve_status(1050.0, 1050, DUE, DUE) == StatutLoyer.PAYE

    @pytest.mark.parametrize("paye", ["0", "0.01", "1049.99", "1050", "1050.01", "2000"])
    @pytest.mark.parametrize("now", [date(2024, 3, 4), DUE, date(2024, 3, 6)])
    def test_partition(self, paye, now):
        """Chaque couple (montant payé, date) tombe dans exactement un statut, selon la priorité."""
        du, paye = Decimal("1050"), Decimal(paye)
        if paye >= du:
            expected = StatutLoyer.PAYE
        elif paye > 0:
            expected = StatutLoyer.PARTIEL
        elif now > DUE:
            expected = StatutLoyer.RETARD
        else:
            expected = StatutLoyer.EN_ATTENTE
        assert resolve_status(du, paye, DUE, now) == expected


class TestTransitionToPaid:
    @pytest.mark.parametrize("previous", [StatutLoyer.EN_ATTENTE, StatutLoyer.PARTIEL, StatutLoyer.RETARD])
    def test_into_paid(self, previous):
        assert is_transition_to_paid(previous, StatutLoyer.PAYE)

    def test_paid_to_paid_is_not_a_transition(self):
        assert not is_transition_to_paid(StatutLoyer.PAYE, StatutLoyer.PAYE)

    def test_not_paid(self):
        assert not is_transition_to_paid(StatutLoyer.EN_ATTENTE, StatutLoyer.PARTIEL)


class TestPeriods:
    def test_due_date_clamped_to_month_end(self):
        """Jour de paiement 31 → 29 février en année bissextile, 30 avril."""
        assert due_date(2, 2024, 31) == date(2024, 2, 29)
        assert due_date(2, 2023, 31) == date(2023, 2, 28)
        assert due_date(4, 2024, 31) == date(2024, 4, 30)
        assert due_date(1, 2024, 5) == date(2024, 1, 5)

    def test_period_label(self):
        assert period_label(1, 2024) == "Janvier 2024"
        assert period_label(8, 2024) == "Août 2024"
        assert period_label(12, 2023) == "Décembre 2023"

    def test_period_label_unknown_month(self):
        assert period_label(13, 2024) == "Mois 13 2024"

    def test_iter_months_across_year_end(self):
        months = list(iter_months(date(2023, 11, 20), date(2024, 2, 1)))
        assert months == [(11, 2023), (12, 2023), (1, 2024), (2, 2024)]

    def test_iter_months_empty_when_start_after_end(self):
        assert list(iter_months(date(2024, 5, 1), date(2024, 4, 30))) == []
