"""
Rent record status resolution.

Precedence (first match wins):
  1. paid >= due                    → PAYE
  2. 0 < paid < due                 → PARTIEL
  3. paid == 0 and now > due date   → RETARD
  4. otherwise                      → EN_ATTENTE
"""
from datetime import date, datetime
from decimal import Decimal

from app.core.periods import as_date
from app.models.enums import StatutLoyer


def resolve_status(
    montant_du: Decimal,
    montant_paye: Decimal,
    date_echeance: date,
    now: date | datetime,
) -> StatutLoyer:
    du = Decimal(str(montant_du))
    paye = Decimal(str(montant_paye))

    if paye >= du:
        return StatutLoyer.PAYE
    if paye > 0:
        return StatutLoyer.PARTIEL
    # lateness is measured in whole days: the due date itself is not late
    if as_date(now) > as_date(date_echeance):
        return StatutLoyer.RETARD
    return StatutLoyer.EN_ATTENTE


def is_transition_to_paid(previous: StatutLoyer, new: StatutLoyer) -> bool:
    return previous != StatutLoyer.PAYE and new == StatutLoyer.PAYE
