"""Weekly dinner planning, shopping list aggregation and ingredient pricing."""
