"""Installment plan generation."""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from dateutil.relativedelta import relativedelta

from ledgerkit.domain.entities import EntryStatus, InstallmentData
from ledgerkit.domain.errors import ValidationError, non_positive_amount

CENT = Decimal("0.01")


def _round(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class InstallmentPlanService:
    """Split an amount into monthly installments."""

    def generate(
        self,
        amount: Decimal,
        count: int,
        first_due_date: date,
        interest: Optional[Decimal] = None,
        discount: Optional[Decimal] = None,
        equal_values: bool = True,
    ) -> tuple[InstallmentData, ...]:
        """Generate ``count`` planned installments, one month apart.

        Interest and discount are spread evenly. The last installment absorbs
        whatever rounding left over, so principals always sum to ``amount``.

        Args:
            amount: Total principal to split
            count: Number of installments (>= 1)
            first_due_date: Due date of the first installment
            interest: Total interest to distribute
            discount: Total discount to distribute
            equal_values: If True, all but the last installment get the same
                principal; otherwise each takes an even share of what remains

        Returns:
            Installment descriptions ordered by sequence

        Raises:
            ValidationError: If count < 1, amount <= 0 or an installment total
                would not be positive
        """
        if count < 1:
            raise ValidationError("Number of installments must be at least 1")
        if amount <= 0:
            raise ValidationError(non_positive_amount(amount))

        interest = interest or Decimal("0")
        discount = discount or Decimal("0")
        base = _round(amount / count)

        remaining_principal = amount
        remaining_interest = interest
        remaining_discount = discount
        installments = []

        for sequence in range(1, count + 1):
            last = sequence == count
            if last:
                principal = _round(remaining_principal)
            elif equal_values:
                principal = base
            else:
                principal = _round(remaining_principal / (count - sequence + 1))
            remaining_principal = _round(remaining_principal - principal)

            share_interest = _round(remaining_interest) if last else _round(interest / count)
            remaining_interest = _round(remaining_interest - share_interest)
            share_discount = _round(remaining_discount) if last else _round(discount / count)
            remaining_discount = _round(remaining_discount - share_discount)

            total = principal + share_interest - share_discount
            if total <= 0:
                raise ValidationError(f"Installment {sequence} total must be positive, got {total}")

            due_date = first_due_date + relativedelta(months=sequence - 1)
            installments.append(
                InstallmentData(
                    sequence=sequence,
                    movement_date=due_date,
                    due_date=due_date,
                    principal=principal,
                    interest=share_interest,
                    discount=share_discount,
                    total=total,
                    status=EntryStatus.PLANNED,
                )
            )

        return tuple(installments)
