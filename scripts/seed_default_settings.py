"""
Create the default global investment settings if none exist.
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from propvest.db.database import get_db_context, init_db
from propvest.db.models import InvestmentSettings
from propvest.services.investments import ensure_default_settings


def main():
    init_db()

    with get_db_context() as db:
        existing = db.query(InvestmentSettings).count()
        settings = ensure_default_settings(db)
        if existing:
            print(f"Active settings already present (ID: {settings.id}). Skipping.")
            return

        print("Created default investment settings:")
        print(f"  Rental yield:      {settings.rental_yield_percentage}%")
        print(f"  Appreciation:      {settings.appreciation_rate_percentage}%")
        print(f"  Maturity period:   {settings.maturity_period_years} years")
        print(f"  Early withdrawal:  {settings.early_withdrawal_penalty_percentage}% penalty")
        print(f"  Platform fee:      {settings.platform_fee_percentage}%")
        print(
            f"  Investment range:  {settings.min_investment_amount} - "
            f"{settings.max_investment_amount}"
        )


if __name__ == "__main__":
    main()
