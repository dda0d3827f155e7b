#!/usr/bin/env python3
"""
Demo script for the QuoteEngine.
Loads a saved project (application JSON) and prints the cost breakdown and price.

    python demo_quote.py [samples/demo_project.json]
"""

import sys
from pathlib import Path

from pydantic import ValidationError

from rackquote.core.logging_config import setup_logging
from rackquote.core.settings import get_settings
from rackquote.domain.models import CalculationMode
from rackquote.engine.context import cents
from rackquote.engine.quote_engine import QuoteEngine

DEFAULT_SAMPLE = Path(__file__).parent / "samples" / "demo_project.json"


def main(argv=None):
    """Demo of the quote engine on one project file."""
    argv = sys.argv[1:] if argv is None else argv
    path = Path(argv[0]) if argv else DEFAULT_SAMPLE

    settings = get_settings()
    setup_logging(settings.log_level)
    engine = QuoteEngine(settings)

    print("RackQuote - Quote Engine Demo")
    print("=" * 50)

    try:
        state = engine.load_state(str(path))
    except FileNotFoundError:
        print(f"File not found: {path}")
        return 1
    except ValidationError as e:
        print(f"Invalid project file {path}:\n{e}")
        return 1

    result = engine.calculate(state)
    b = result.breakdown

    print(f"\nProject: {state.active.meta.project_number or '-'} ({state.mode.value})")
    print("-" * 40)
    print(f"  Suppliers:    {b.money(b.suppliers)}")
    print(f"  Transport:    {b.money(b.transport)}")
    print(f"  Other:        {b.money(b.other)}")
    print(f"  Installation: {b.money(b.installation)}")
    print(f"  ORM fee:      {b.money(b.orm_fee)} (included)")
    print(f"  Total cost:   {b.money(b.total)}")
    print(f"  Excluded:     {b.money(b.excluded)}")

    price = result.price
    print(f"\nSelling price: {b.money(price.selling_price)}")
    print(f"Margin:        {cents(price.margin_percent)}% ({result.margin_level.value})")
    print(f"Profit:        {b.money(price.profit)}")
    print(f"Client price:  {result.client_price.quantized()}")

    sched = result.payment_schedule
    print("\nPayment schedule:")
    print(f"  Advance 1: {b.money(sched.advance1_amount)}")
    print(f"  Advance 2: {b.money(sched.advance2_amount)}")
    print(f"  Final ({sched.final_percent}%): {b.money(sched.final_amount)}")

    print("\nSteps:")
    for j, line in enumerate(result.steps, 1):
        print(f"  {j}. {line}")

    compare = engine.compare(state)
    initial = compare[CalculationMode.INITIAL]
    final = compare[CalculationMode.FINAL]
    print("\nInitial vs Final:")
    print(f"  {initial.money(initial.total)} -> {final.money(final.total)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
