"""Market module - QP-redeemable catalog items."""
