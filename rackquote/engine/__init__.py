# Engine package: keep imports out of here, calculators import engine.context
