# rackquote: cost aggregation and pricing for warehouse-equipment quotes
