"""Diet planning engine: catalog, scoring, meal composition and weekly planning."""
