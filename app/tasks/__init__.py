"""Tasks module - brand-sponsored activities users join for QP."""
